import json
import textwrap
from typer.testing import CliRunner
from magicgate import __version__
from magicgate.cli.main import app, collect_targets, verify_worker
from magicgate.engines.signatures import load_registry

runner = CliRunner()


def test_cli_verify_clean_file(wav_file):
    """
    Test 1: Verify a real WAV header against the default allow-list.
    Expectation: Exit code 0.
    """
    result = runner.invoke(app, ["verify", str(wav_file)])

    assert result.exit_code == 0
    assert "All files verified" in result.stdout


def test_cli_verify_rejects_avi_as_wav(avi_file):
    """
    Test 2: An AVI shares the RIFF prefix with WAV.
    Expectation: Exit code 1, file rejected.
    """
    result = runner.invoke(app, ["verify", str(avi_file), "-f", "wav"])

    assert result.exit_code == 1
    assert "rejected" in result.stdout


def test_cli_verify_directory_json(sample_dir):
    """
    Test 3: Directory scan with JSON output.
    Expectation: one record per file; png and avi rejected.
    """
    result = runner.invoke(app, ["verify", str(sample_dir), "--json", "-f", "mp3", "-f", "wav"])

    assert result.exit_code == 1
    records = {r["file_path"].split("/")[-1]: r for r in json.loads(result.stdout)}
    assert records["song.wav"]["detected_format"] == "wav"
    assert records["tagged.mp3"]["detected_format"] == "mp3"
    assert records["frame.mp3"]["detected_format"] == "mp3"
    assert records["movie.avi"]["status"] == "REJECT"
    assert records["image.png"]["status"] == "REJECT"


def test_cli_verify_unknown_format(wav_file):
    """
    Test 4: Unregistered format id.
    Expectation: usage error (exit 2), never a silent no-match.
    """
    result = runner.invoke(app, ["verify", str(wav_file), "-f", "flac"])

    assert result.exit_code == 2
    assert "Unknown file format" in result.stdout


def test_cli_verify_missing_path(tmp_path):
    result = runner.invoke(app, ["verify", str(tmp_path / "nothing")])
    assert result.exit_code == 1
    assert "not found" in " ".join(result.stdout.split())


def test_cli_extra_signatures(tmp_path, avi_file):
    """
    Test 5: Extend the registry from YAML and accept AVI explicitly.
    """
    sig_file = tmp_path / "signatures.yaml"
    sig_file.write_text(textwrap.dedent("""
    formats:
      avi:
        - "52 49 46 46 ?? ?? ?? ?? 41 56 49 20"
    """))

    result = runner.invoke(app, ["verify", str(avi_file), "-f", "avi", "-s", str(sig_file)])
    assert result.exit_code == 0


def test_cli_formats_lists_signatures():
    result = runner.invoke(app, ["formats"])
    assert result.exit_code == 0
    assert "mp3" in result.stdout
    assert "??" in result.stdout


def test_cli_formats_rejects_bad_config(isolated_env):
    (isolated_env / "magicgate.yaml").write_text("http_timeout: soon\n")
    result = runner.invoke(app, ["formats"])
    assert result.exit_code == 2
    assert "http_timeout" in result.stdout


def test_cli_verify_rejects_non_boolean_strict_mode(isolated_env, wav_file):
    (isolated_env / "magicgate.yaml").write_text("strict_mode: \"false\"\n")
    result = runner.invoke(app, ["verify", str(wav_file)])
    assert result.exit_code == 2


def test_cli_manifest_generation(sample_dir, tmp_path):
    """
    Test 6: Manifest never fails on rejected files.
    """
    manifest_path = tmp_path / "provenance.json"

    result = runner.invoke(app, ["manifest", str(sample_dir), "-o", str(manifest_path)])

    assert result.exit_code == 0
    assert "Manifest saved" in result.stdout
    with open(manifest_path) as f:
        data = json.load(f)
    assert data["summary"]["total_files"] == 5
    assert data["summary"]["rejected"] == 2
    assert data["tool"]["name"] == "magicgate"


def test_cli_init_and_config(isolated_env, avi_file):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert (isolated_env / "magicgate.yaml").exists()

    result = runner.invoke(app, ["init"])
    assert "already exists" in result.stdout

    (isolated_env / "magicgate.yaml").write_text("allowed_formats: [mp3]\n")
    result = runner.invoke(app, ["verify", str(avi_file)])
    assert result.exit_code == 1


def test_cli_version():
    result = runner.invoke(app, ["version"])
    assert __version__ in result.stdout


def test_worker_reports_read_errors(tmp_path):
    res = verify_worker(str(tmp_path / "gone.wav"), ["wav"], load_registry(), 1.0)
    assert res.status == "ERROR"
    assert res.error


def test_collect_targets_remote_passthrough():
    assert collect_targets("s3://bucket/key.wav") == ["s3://bucket/key.wav"]
