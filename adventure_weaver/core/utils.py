import base64
import binascii
import logging
import re
from typing import List, Sequence

logger = logging.getLogger(__name__)

# ——— Logging ———————————————————————————————————————————

def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s][%(levelname)s] %(name)s: %(message)s",
    )

# ——— Context utilities —————————————————————————————————

def recent_scenes(story_log: Sequence[str], n: int) -> List[str]:
    """
    Keep only the last n scene descriptions for the continuation prompt.
    """
    if n <= 0:
        return []
    return list(story_log[-n:])

def last_sentences(text: str, n: int) -> str:
    """
    Grab the last n sentences (naïve split), used for short alt texts.
    """
    sentences = re.split(r'(?<=[\.!?])\s+', text.strip())
    return " ".join(sentences[-n:])

# ——— Image payloads ————————————————————————————————————

def to_data_url(b64_data: str, mime: str = "image/png") -> str:
    """
    Turn a bare (or already prefixed) base64 image into a data URL.
    Raises ValueError when the payload does not decode.
    """
    payload = b64_data.split(",", 1)[-1].strip()
    if not payload:
        raise ValueError("empty image payload")
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"image payload is not base64: {e}") from e
    return f"data:{mime};base64,{payload}"
