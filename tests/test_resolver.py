import pytest

from padengine.core.errors import ClipResolveError
from padengine.resolver import extract_clip_id, is_audio_file, resolve_clip_ref

CLIP_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    f"https://www.youtube.com/watch?v={CLIP_ID}",
    f"https://www.youtube.com/watch?feature=share&v={CLIP_ID}",
    f"https://youtu.be/{CLIP_ID}?t=42",
    f"https://www.youtube.com/embed/{CLIP_ID}",
    f"https://www.youtube.com/shorts/{CLIP_ID}",
])
def test_extract_clip_id(url):
    assert extract_clip_id(url) == CLIP_ID


def test_extract_clip_id_rejects_wrong_length():
    assert extract_clip_id("https://youtu.be/short") is None
    assert extract_clip_id("https://example.com/") is None


def test_resolve_url():
    assert resolve_clip_ref(f"  https://youtu.be/{CLIP_ID}  ") == CLIP_ID


def test_resolve_local_audio_file(tmp_path):
    path = tmp_path / "kick.wav"
    path.write_bytes(b"RIFF")

    assert is_audio_file(str(path))
    assert resolve_clip_ref(str(path)) == str(path)
    assert resolve_clip_ref(f'"{path}"') == str(path)
    assert resolve_clip_ref(f"file://{path}") == str(path)


def test_resolve_rejects_non_audio_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    with pytest.raises(ClipResolveError):
        resolve_clip_ref(str(path))


def test_resolve_rejects_missing_audio_file(tmp_path):
    with pytest.raises(ClipResolveError):
        resolve_clip_ref(str(tmp_path / "missing.wav"))


def test_resolve_rejects_empty_and_junk():
    for text in ("", "   ", "hello world", None):
        with pytest.raises(ClipResolveError):
            resolve_clip_ref(text)
