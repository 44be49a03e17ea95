"""Multi-scale image descriptors used as rendered emote elements."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.models import SIZE_KEYS
from .store import Emote


@dataclass(frozen=True)
class ImageSpec:
    """Specification for an image source."""

    scale: int
    key: str
    url: str
    animated: bool = False


class ImageSet:
    """Multi-scale image set that returns the best available image."""

    def __init__(self, images: dict[int, ImageSpec]):
        self._images = dict(images)

    def __repr__(self) -> str:
        return f"ImageSet(scales={sorted(self._images)})"

    @property
    def scales(self) -> list[int]:
        return sorted(self._images)

    def get(self, scale: int) -> ImageSpec | None:
        return self._images.get(scale)

    def best(self, scale: int) -> ImageSpec | None:
        """Exact scale if present, else the nearest lower, else the smallest above."""
        if not self._images:
            return None
        if scale in self._images:
            return self._images[scale]
        lower = [s for s in self._images if s < scale]
        if lower:
            return self._images[max(lower)]
        return self._images[min(self._images)]


class EmoteImageRenderer:
    """Renders an emote into an ImageSet covering scales 1x to 4x."""

    def render(self, emote: Emote) -> ImageSet:
        animated = "gif" in emote.mime or "animated" in emote.tags
        specs: dict[int, ImageSpec] = {}
        for size in SIZE_KEYS:
            url = emote.cdn(size)
            if not url:
                continue
            scale = int(size)
            key = f"emote:{emote.provider.value.lower()}:{emote.id}@{scale}x"
            specs[scale] = ImageSpec(scale=scale, key=key, url=url, animated=animated)
        return ImageSet(specs)
