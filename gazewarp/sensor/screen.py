from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageGrab

from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import Region


@dataclass
class ScreenGrabber:
    """
    Grabs screen regions with Pillow. Regions may reach past the edge of
    the desktop; Pillow fills the missing part with black.
    """
    all_screens: bool = True

    def capture(self, region: Region) -> Image.Image:
        try:
            img = ImageGrab.grab(bbox=region.bbox, all_screens=self.all_screens)
        except (OSError, NotImplementedError) as exc:
            raise CaptureUnavailable(str(exc)) from exc
        if img is None:
            raise CaptureUnavailable(f"grab returned nothing for {region}")
        return img

    def full(self) -> Image.Image:
        try:
            return ImageGrab.grab(all_screens=self.all_screens)
        except (OSError, NotImplementedError) as exc:
            raise CaptureUnavailable(str(exc)) from exc

    __call__ = capture
