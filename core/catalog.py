"""Sample catalog loading and building.

A catalog is a YAML file listing sample images::

    images:
      - id: beach
        placeholder: iVBORw0KGgo...
        url: photos/beach.jpg

A bare top-level list is accepted too. Relative local URLs resolve against
the catalog's own directory.
"""
import base64
import io
import logging
import os
from typing import Iterable, List, Sequence
from urllib.parse import urlparse

import yaml
from PIL import Image, ImageOps

from core.errors import CatalogError
from core.models import SampleImage

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp', '.gif', '.tiff', '.tif', '.webp')


def _resolve_url(url, base_dir: str):
    if url is None or not str(url).strip():
        return None
    url = str(url).strip()
    if urlparse(url).scheme or os.path.isabs(url):
        return url
    return os.path.normpath(os.path.join(base_dir, url))


def parse_catalog(raw, base_dir: str = ".") -> List[SampleImage]:
    if isinstance(raw, dict):
        raw = raw.get("images")
    if not isinstance(raw, list):
        raise CatalogError("Catalog must be a list of images or a mapping with an 'images' list")

    images: List[SampleImage] = []
    seen = set()
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise CatalogError(f"Catalog entry {position} is not a mapping")
        placeholder = entry.get("placeholder")
        if not isinstance(placeholder, str) or not placeholder.strip():
            raise CatalogError(f"Catalog entry {position} has no placeholder")
        image_id = str(entry.get("id", position))
        if image_id in seen:
            raise CatalogError(f"Duplicate catalog id {image_id!r}")
        seen.add(image_id)
        images.append(SampleImage(
            id=image_id,
            placeholder=placeholder.strip(),
            url=_resolve_url(entry.get("url"), base_dir),
        ))
    return images


def load_catalog(path: str) -> List[SampleImage]:
    path = os.path.expanduser(path)
    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise CatalogError(f"Cannot read catalog {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise CatalogError(f"Malformed catalog at {path}") from exc
    images = parse_catalog(raw, os.path.dirname(os.path.abspath(path)))
    logger.info("Loaded %d sample images from %s", len(images), path)
    return images


def catalog_prefix(catalog: Sequence[SampleImage], count: int) -> List[SampleImage]:
    """The first *count* images. The catalog itself is left untouched."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return list(catalog[:count])


def encode_placeholder(image_path: str, max_side: int = 32) -> str:
    """Shrink an image to at most *max_side* px and return it as a placeholder string."""
    with Image.open(image_path) as img:
        img = ImageOps.exif_transpose(img)
        img = img.convert("RGBA")
        img.thumbnail((max_side, max_side), Image.Resampling.LANCZOS)
        out = io.BytesIO()
        img.save(out, "PNG", optimize=True)
    return base64.b64encode(out.getvalue()).decode("ascii")


def _iter_images(directory: str) -> Iterable[str]:
    for name in sorted(os.listdir(directory)):
        if name.startswith("._"):
            continue
        if name.lower().endswith(IMAGE_EXTENSIONS):
            yield os.path.join(directory, name)


def build_catalog(directory: str, output_path: str, max_side: int = 32) -> List[SampleImage]:
    """Encode every image in *directory* and write the catalog to *output_path*."""
    images: List[SampleImage] = []
    out_dir = os.path.dirname(os.path.abspath(output_path))
    for path in _iter_images(directory):
        try:
            placeholder = encode_placeholder(path, max_side)
        except (OSError, ValueError) as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        rel = os.path.relpath(os.path.abspath(path), out_dir)
        image_id = os.path.splitext(os.path.basename(path))[0]
        images.append(SampleImage(id=image_id, placeholder=placeholder, url=rel))

    os.makedirs(out_dir, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.safe_dump(
            {"images": [{"id": i.id, "placeholder": i.placeholder, "url": i.url} for i in images]},
            f, default_flow_style=False, sort_keys=False,
        )
    logger.info("Wrote %d catalog entries to %s", len(images), output_path)
    # why: return paths resolved the same way load_catalog would
    return [SampleImage(i.id, i.placeholder, _resolve_url(i.url, out_dir)) for i in images]
