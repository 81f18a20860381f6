"""Audio capture and byte extraction."""

from .capture import AudioRecorder
from .sources import (
    AudioSource,
    NativeFileSource,
    WebBlobOrBase64Source,
    extract_audio_bytes,
    decode_base64_audio,
    select_audio_source,
)

__all__ = [
    'AudioRecorder',
    'AudioSource',
    'NativeFileSource',
    'WebBlobOrBase64Source',
    'extract_audio_bytes',
    'decode_base64_audio',
    'select_audio_source',
]
