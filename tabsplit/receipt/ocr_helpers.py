"""Pure OCR transformation helpers: image preparation and detections -> text lines."""

import io
from typing import Any

MAX_IMAGE_DIMENSION = 3000  # Resize if either dimension exceeds this
OCR_IMAGE_PADDING = 50  # White padding around image to prevent edge truncation
STORED_JPEG_QUALITY = 70

MIN_CONFIDENCE = 0.5  # Ignore detections with lower OCR confidence
MIN_Y_OVERLAP_RATIO = 0.5  # Vertical overlap needed to put two regions on one line


def resize_image_bytes(
    image_bytes: bytes, max_dimension: int = MAX_IMAGE_DIMENSION, padding: int = OCR_IMAGE_PADDING
) -> bytes:
    """
    Resize image bytes if it exceeds max_dimension on either side.

    Also adds white padding around the image to prevent OCR edge truncation.

    Args:
        image_bytes: Image data as bytes
        max_dimension: Maximum allowed dimension (width or height)
        padding: White padding to add around image (pixels)

    Returns:
        Image bytes (JPEG format), resized if necessary, with padding added
    """
    from PIL import Image, ImageOps

    img = Image.open(io.BytesIO(image_bytes))

    # Apply EXIF orientation so OCR sees the receipt upright
    img = ImageOps.exif_transpose(img)

    width, height = img.size

    if width <= max_dimension and height <= max_dimension:
        img_final = img
    else:
        if width > height:
            new_width = max_dimension
            new_height = int(height * (max_dimension / width))
        else:
            new_height = max_dimension
            new_width = int(width * (max_dimension / height))

        img_final = img.resize((new_width, new_height), Image.Resampling.LANCZOS)

    if padding > 0:
        img_final = ImageOps.expand(img_final, border=padding, fill="white")

    buffer = io.BytesIO()
    img_final.convert("RGB").save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


def encode_image_data(image_bytes: bytes, quality: int = STORED_JPEG_QUALITY) -> bytes:
    """Re-encode an uploaded photo as a compact JPEG for storing with the receipt."""
    from PIL import Image, ImageOps

    img = ImageOps.exif_transpose(Image.open(io.BytesIO(image_bytes)))
    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def _boxes_overlap_y(det1: dict[str, Any], det2: dict[str, Any], min_overlap_ratio: float) -> bool:
    """Check if two detection boxes overlap in Y-axis by at least min_overlap_ratio."""
    overlap_start = max(det1["y_min"], det2["y_min"])
    overlap_end = min(det1["y_max"], det2["y_max"])
    if overlap_start >= overlap_end:
        return False

    smaller_height = min(det1["y_max"] - det1["y_min"], det2["y_max"] - det2["y_min"])
    # Avoid division by zero for degenerate boxes
    if smaller_height <= 0:
        return False

    return (overlap_end - overlap_start) / smaller_height >= min_overlap_ratio


def _detection_data(detection: Any) -> dict[str, Any] | None:
    """Unpack one ``[bbox, [text, confidence]]`` detection; None if unusable."""
    try:
        bbox, (text, confidence) = detection
        xs = [float(point[0]) for point in bbox]
        ys = [float(point[1]) for point in bbox]
        confidence = float(confidence)
    except (TypeError, ValueError, IndexError):
        return None
    if not xs or not ys or not isinstance(text, str) or not text.strip():
        return None
    return {
        "text": text.strip(),
        "confidence": confidence,
        "min_x": min(xs),
        "y_min": min(ys),
        "y_max": max(ys),
        "center_y": sum(ys) / len(ys),
    }


def detections_to_lines(
    detections: list[Any],
    min_confidence: float = MIN_CONFIDENCE,
) -> list[str]:
    """
    Group OCR text regions into receipt lines, top to bottom.

    Regions whose boxes overlap vertically are joined left to right, so an item
    description and its price printed in separate columns become one line.

    Args:
        detections: PaddleOCR-style ``[bbox, [text, confidence]]`` entries
        min_confidence: Regions below this confidence are dropped

    Returns:
        Text lines in reading order
    """
    regions = []
    for detection in detections:
        data = _detection_data(detection)
        if data is None or data["confidence"] < min_confidence:
            continue
        regions.append(data)

    regions.sort(key=lambda d: (d["center_y"], d["min_x"]))

    lines: list[list[dict[str, Any]]] = []
    for region in regions:
        for line in lines:
            if any(_boxes_overlap_y(region, member, MIN_Y_OVERLAP_RATIO) for member in line):
                line.append(region)
                break
        else:
            lines.append([region])

    lines.sort(key=lambda line: sum(d["center_y"] for d in line) / len(line))
    return [" ".join(d["text"] for d in sorted(line, key=lambda d: d["min_x"])) for line in lines]


def ocr_result_to_lines(raw_result: dict[str, Any]) -> list[str]:
    """Turn an OCR service response into text lines.

    Accepts either ready-made ``{"lines": [...]}`` or raw ``{"detections": [...]}``.
    """
    if isinstance(raw_result.get("lines"), list):
        return [str(line) for line in raw_result["lines"]]
    return detections_to_lines(raw_result.get("detections") or [])
