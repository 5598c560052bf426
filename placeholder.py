"""Empty-canvas artwork shown before the first sketch arrives."""
import io

from PIL import Image, ImageDraw, ImageFont

EMPTY_CANVAS_TEXT = "Your canvas is empty. Describe a scene below and the artist will sketch it."

PAPER = (241, 237, 228)
INK = (96, 96, 104)


def placeholder_png(text: str = EMPTY_CANVAS_TEXT, size=(1024, 768)) -> bytes:
    w, h = size
    img = Image.new("RGB", (w, h), color=PAPER)
    draw = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype("arial.ttf", 28)
    except OSError:
        font = ImageFont.load_default()

    margin = 40
    lines = _wrap_text(draw, text, font, w - 2 * margin)
    heights = [_text_size(draw, line, font)[1] for line in lines]
    block_h = sum(heights) + 8 * max(0, len(lines) - 1)
    y = max(margin, (h - block_h) // 2)
    for line, line_h in zip(lines, heights):
        line_w, _ = _text_size(draw, line, font)
        draw.text(((w - line_w) // 2, y), line, font=font, fill=INK)
        y += line_h + 8

    bio = io.BytesIO()
    img.save(bio, format="PNG")
    return bio.getvalue()


def _wrap_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: int):
    words = text.split()
    lines = []
    cur = ""
    for word in words:
        test = (cur + " " + word).strip()
        test_w, _ = _text_size(draw, test, font)
        if test_w <= max_width:
            cur = test
        else:
            if cur:
                lines.append(cur)
            cur = word
    if cur:
        lines.append(cur)
    return lines


def _text_size(draw: ImageDraw.ImageDraw, text: str, font):
    """Return (width, height) of text as drawn with ``font``."""
    bbox = draw.textbbox((0, 0), text, font=font)
    return (bbox[2] - bbox[0], bbox[3] - bbox[1])
