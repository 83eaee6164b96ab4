import pytest
from pathlib import Path
from tests.utils.samples import WAV_HEADER, AVI_HEADER, MP3_ID3_HEADER, MP3_FRAME_HEADER, PNG_HEADER


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch, mocker):
    """
    Isolates the environment for EACH test.

    MagicGate reads magicgate.yaml from the working directory and caches the
    process-wide registry, so every test gets a clean cwd and a fresh registry.
    """
    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    for var in ("MAGICGATE_ALLOWED_FORMATS", "MAGICGATE_SIGNATURES_FILE", "MAGICGATE_HTTP_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)

    mocker.patch("magicgate.engines.signatures.RegistryLoader._instance", None)
    return workdir


@pytest.fixture
def sample_dir(tmp_path) -> Path:
    """A folder with one file per interesting header."""
    d = tmp_path / "samples"
    d.mkdir()
    (d / "song.wav").write_bytes(WAV_HEADER + b"\x00" * 32)
    (d / "movie.avi").write_bytes(AVI_HEADER + b"\x00" * 32)
    (d / "tagged.mp3").write_bytes(MP3_ID3_HEADER + b"\x00" * 32)
    (d / "frame.mp3").write_bytes(MP3_FRAME_HEADER + b"\x00" * 32)
    (d / "image.png").write_bytes(PNG_HEADER + b"\x00" * 32)
    return d


@pytest.fixture
def wav_file(sample_dir) -> Path:
    return sample_dir / "song.wav"


@pytest.fixture
def avi_file(sample_dir) -> Path:
    return sample_dir / "movie.avi"


@pytest.fixture
def png_disguised_as_mp3(tmp_path) -> Path:
    f = tmp_path / "not_really.mp3"
    f.write_bytes(PNG_HEADER)
    return f
