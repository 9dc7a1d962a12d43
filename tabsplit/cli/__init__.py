"""Unified command-line interface for tabsplit.

Usage:
    tabsplit scan <image> [--use-model]
    tabsplit parse-text <file|->
    tabsplit normalize <file|->
    tabsplit list
    tabsplit show <id> [--summary]
    tabsplit select <id> [n ...] [--all | --none]
    tabsplit serve [--port]
"""
