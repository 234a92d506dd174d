"""Reference image loading for the client side."""
import base64
import mimetypes
import re
from pathlib import Path
from typing import List, Optional, Union

from videos.models import ReferenceImage

MAX_CLIENT_REFERENCE_IMAGES = 2


def sanitize_filename(name: str) -> str:
    return re.sub(r"\s+", "-", name)


def to_data_url(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def load_reference_image(path: Union[str, Path], mime_type: Optional[str] = None) -> ReferenceImage:
    """
    Read an image file into a ReferenceImage carrying a data URL.

    Args:
        path: Image file path
        mime_type: Declared type; guessed from the file name when omitted

    Raises:
        ValueError: the declared type is not an image or the file is empty
        OSError: the file cannot be read
    """
    path = Path(path)
    declared = mime_type or mimetypes.guess_type(path.name)[0] or ""
    if not declared.startswith("image/"):
        raise ValueError(f"Please choose an image file ({path.name} is {declared or 'of unknown type'}).")

    data = path.read_bytes()
    if not data:
        raise ValueError(f"Unable to read the file: {path.name} is empty.")

    return ReferenceImage(name=sanitize_filename(path.name), image_data=to_data_url(declared, data))


def load_reference_images(paths: List[Union[str, Path]], limit: int = MAX_CLIENT_REFERENCE_IMAGES) -> List[ReferenceImage]:
    """Load up to `limit` reference images, failing on the first invalid file."""
    if len(paths) > limit:
        raise ValueError(f"At most {limit} reference images can be attached.")
    return [load_reference_image(p) for p in paths]
