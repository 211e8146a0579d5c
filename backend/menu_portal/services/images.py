# menu_portal/services/images.py
from dataclasses import dataclass
from PIL import Image, UnidentifiedImageError

@dataclass
class ImageProbe:
    width: int
    height: int
    readable: bool = True

    def below(self, minimum: int) -> bool:
        return self.width < minimum or self.height < minimum

def probe_image(path: str) -> ImageProbe:
    """Reads width/height from the image header without decoding the pixels."""
    try:
        with Image.open(path) as im:
            w, h = im.size
        return ImageProbe(width=w, height=h)
    except (UnidentifiedImageError, OSError, ValueError):
        return ImageProbe(width=0, height=0, readable=False)

def dimension_warning(probe: ImageProbe, minimum: int) -> str | None:
    """Advisory text shown next to an upload; None when the image is large enough."""
    if not probe.readable:
        return "Could not read image dimensions"
    if probe.below(minimum):
        return f"Image resolution ({probe.width}x{probe.height}) is below recommended {minimum}x{minimum}"
    return None
