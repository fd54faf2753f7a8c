"""
Tests for the command line interface
"""
import json

import pytest

from petlens.core import cli
from petlens.core.models import ClassificationOutcome, ErrorKind, PredictionResult, ValidationResult
from petlens.core.validators import ACCEPTED_FILE_TYPES


class _FakeService:
    def __init__(self, settings=None):
        self.settings = settings
        self.calls = []

    def classify_url(self, source):
        self.calls.append(("url", source))
        return ClassificationOutcome(
            ok=True,
            source="url",
            prediction=PredictionResult(label="Cat", probability_percent=91.2),
            resolved_url="https://cdn.example/cat.png",
            extracted_from_wrapper=True,
        )

    def classify_upload(self, path):
        self.calls.append(("upload", path))
        return ClassificationOutcome(
            ok=False,
            source="upload",
            error=ValidationResult.failure(ErrorKind.INVALID_TYPE),
        )


@pytest.fixture
def fake_service(monkeypatch):
    services = []

    def factory(settings=None):
        service = _FakeService(settings)
        services.append(service)
        return service

    monkeypatch.setattr(cli, "PetLens", factory)
    monkeypatch.setattr(cli, "load_settings", lambda yaml_file=None, **overrides: overrides)
    return services


class TestCreateParser:
    """Test create_parser()"""

    def test_flags(self):
        """Flags parse into the namespace"""
        args = cli.create_parser().parse_args(["--resolve-only", "--json", "-v", "x"])
        assert args.input == "x"
        assert args.resolve_only
        assert args.json
        assert args.verbose

    def test_help_lists_accepted_file_types(self):
        """The input help names the accepted upload extensions"""
        assert ACCEPTED_FILE_TYPES in cli.create_parser().format_help()


class TestResolveOnly:
    """Test --resolve-only"""

    def test_prints_normalized_url(self, capsys):
        """The resolved URL goes to stdout"""
        cli.main([
            "--resolve-only",
            "https://searchengine.example/imgres?imgurl=https%3A%2F%2Fcdn.example%2Fdog.png",
        ])
        captured = capsys.readouterr()
        assert captured.out == "https://cdn.example/dog.png\n"
        assert "extracted from wrapper" in captured.err

    def test_json_output(self, capsys):
        """--json prints the full result"""
        cli.main(["--resolve-only", "--json", "https://example.com/cat.jpg"])
        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "ok": True,
            "normalized_url": "https://example.com/cat.jpg",
            "extracted_from_wrapper": False,
            "error": None,
            "message": None,
        }

    def test_invalid_input_exits_nonzero(self, capsys):
        """Unresolvable input exits with status 1"""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--resolve-only", "not a url"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestClassify:
    """Test classification from the command line"""

    def test_url_input(self, capsys, fake_service):
        """URLs are classified through the service"""
        cli.main(["--model", "custom.keras", "https://www.google.com/imgres?imgurl=x"])
        captured = capsys.readouterr()
        assert "Image: https://cdn.example/cat.png" in captured.out
        assert "Prediction: Cat (91.2%)" in captured.out
        assert fake_service[0].settings == {"model_path": "custom.keras"}
        assert fake_service[0].calls[0][0] == "url"

    def test_local_file_input(self, tmp_path, capsys, fake_service):
        """Existing paths are classified as uploads"""
        path = tmp_path / "pet.gif"
        path.write_bytes(b"GIF89a")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--json", str(path)])
        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["error"] == "invalid_type"
        assert fake_service[0].calls == [("upload", str(path))]

    def test_unexpected_errors(self, capsys, monkeypatch):
        """Unexpected exceptions print an error and exit 1"""
        def broken(settings=None):
            raise RuntimeError("model missing")

        monkeypatch.setattr(cli, "PetLens", broken)
        monkeypatch.setattr(cli, "load_settings", lambda yaml_file=None, **overrides: None)
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["https://example.com/cat.jpg"])
        assert exc_info.value.code == 1
        assert "Error: model missing" in capsys.readouterr().err
