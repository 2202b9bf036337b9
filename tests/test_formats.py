"""Tests for decoder registration and lookup."""

import array

import pytest
from pydub import AudioSegment

from tonearm.core.exceptions import DecodeUnsupportedError, FileUnreadableError
from tonearm.formats import FormatDecoder, get_format_for_file, load_audio, supported_extensions
from tonearm.formats import pydub_codec
from tonearm.formats.pydub_codec import PydubFormat
from tonearm.presentation.adapter import PresentationAdapter
from tonearm.services.resource import PlaybackResource
from tonearm.services.session import PlaybackSession
from tonearm.formats.wav import WavFormat
from tonearm.core.models import SessionState

from conftest import create_test_wav


def test_picker_extensions_have_decoders():
    """Test that every extension offered by the file picker can be decoded."""
    extensions = supported_extensions()
    for ext in (".m4a", ".mp3", ".flac", ".wav"):
        assert ext in extensions


def test_wav_goes_to_builtin_parser(wav_file):
    """Test that RIFF files are decoded without ffmpeg."""
    assert isinstance(get_format_for_file(wav_file), WavFormat)


def test_compressed_goes_to_pydub(tmp_path):
    """Test that compressed containers are routed to pydub."""
    path = tmp_path / "song.FLAC"
    path.write_bytes(b"fLaC" + b"\x00" * 32)

    assert isinstance(get_format_for_file(path), PydubFormat)


def test_load_audio_wav(wav_file):
    """Test decoding a WAV through the registry."""
    source = load_audio(wav_file)

    assert source.format.sample_rate == 8000
    assert source.format.channels == 1
    assert source.total_duration == pytest.approx(1.0)
    assert source.playable_seconds == pytest.approx(1.0)


def test_format_decoder_delegates_to_registry(wav_file):
    """Test the decoder object handed to sessions."""
    source = FormatDecoder().load(wav_file)
    assert source.num_frames == 8000


def test_load_audio_missing_file(tmp_path):
    """Test that a missing file is unreadable, not undecodable."""
    with pytest.raises(FileUnreadableError):
        load_audio(tmp_path / "gone.mp3")


def test_load_audio_unknown_extension(tmp_path):
    """Test that a file with no registered decoder is undecodable."""
    path = tmp_path / "notes.txt"
    path.write_text("not audio")

    with pytest.raises(DecodeUnsupportedError):
        load_audio(path)


def test_load_audio_wav_extension_without_riff(tmp_path):
    """Test that a .wav that is not RIFF is undecodable."""
    path = tmp_path / "fake.wav"
    path.write_bytes(b"\x00" * 64)

    assert get_format_for_file(path) is None
    with pytest.raises(DecodeUnsupportedError):
        load_audio(path)


def test_extension_lookup_is_case_insensitive(tmp_path):
    """Test that upper-case extensions find the same decoder."""
    path = tmp_path / "LOUD.WAV"
    path.write_bytes(create_test_wav())

    assert isinstance(get_format_for_file(path), WavFormat)


def create_surround_segment(num_frames: int = 100) -> AudioSegment:
    """5.1 segment with every sample set to 600."""
    samples = array.array("h", [600] * (num_frames * 6))
    return AudioSegment(
        data=samples.tobytes(), sample_width=2, frame_rate=8000, channels=6
    )


def test_pydub_downmixes_surround_to_stereo(tmp_path, monkeypatch):
    """Test that a six-channel file is decoded as stereo."""
    path = tmp_path / "surround.flac"
    path.write_bytes(b"fLaC" + b"\x00" * 32)
    monkeypatch.setattr(
        pydub_codec.AudioSegment, "from_file", lambda f, *a, **kw: create_surround_segment()
    )

    source = PydubFormat().load(path)

    assert source.format.channels == 2
    assert source.format.bits_per_sample == 16
    assert source.num_frames == 100
    assert array.array("h", source.data[:4]).tolist() == [600, 600]


def test_pydub_unexpected_error_is_undecodable(tmp_path, monkeypatch):
    """Test that any other decoder failure becomes DecodeUnsupportedError."""
    path = tmp_path / "odd.m4a"
    path.write_bytes(b"\x00" * 32)

    def explode(f, *args, **kwargs):
        raise IndexError("ffprobe returned no streams")

    monkeypatch.setattr(pydub_codec.AudioSegment, "from_file", explode)

    with pytest.raises(DecodeUnsupportedError) as excinfo:
        PydubFormat().load(path)
    assert isinstance(excinfo.value.__cause__, IndexError)


def test_surround_file_loads_in_session(tmp_path, monkeypatch, backend, library):
    """Test that a six-channel file loads and opens without escaping the adapter."""
    path = tmp_path / "surround.flac"
    path.write_bytes(b"fLaC" + b"\x00" * 32)
    library.add("surround.flac", seconds=100 / 8000)
    monkeypatch.setattr(
        pydub_codec.AudioSegment, "from_file", lambda f, *a, **kw: create_surround_segment()
    )

    resource = PlaybackResource.acquire_device(backend)
    with PlaybackSession(resource, decoder=FormatDecoder(), prober=library) as session:
        adapter = PresentationAdapter(session)

        assert adapter.open(path) is True
        assert session.state == SessionState.LOADED_PAUSED
        assert session.resource.sink.source.format.channels == 2
        assert session.last_error is None
