"""Raster primitives on Pillow images: crop, nearest scale, blit, canvas."""

from PIL import Image


TRANSPARENT = (0, 0, 0, 0)


def crop(img: Image.Image, x: int, y: int, w: int, h: int) -> Image.Image:
    """Crop to (x, y, w, h). Regions past the image edge come back transparent."""
    return img.crop((round(x), round(y), round(x) + round(w), round(y) + round(h)))


def scale_nearest(img: Image.Image, factor: float) -> Image.Image:
    """Scale by factor with nearest-neighbour sampling (keeps hard pixel edges)."""
    size = (
        max(1, round(img.width * factor)),
        max(1, round(img.height * factor)),
    )
    return img.resize(size, Image.Resampling.NEAREST)


def new_canvas(
    width: int,
    height: int,
    background: tuple[int, int, int] | None = None,
) -> Image.Image:
    """Allocate an RGBA canvas, transparent unless a background RGB is given."""
    fill = TRANSPARENT if background is None else (*background, 255)
    return Image.new("RGBA", (max(1, width), max(1, height)), fill)


def blit(canvas: Image.Image, img: Image.Image, x: float, y: float) -> None:
    """Paint img onto canvas at (x, y), in place.

    The image's own alpha is the paste mask, so transparent pixels leave
    the canvas untouched. Parts falling outside the canvas are clipped.
    """
    canvas.paste(img, (round(x), round(y)), img)
