from uploadai import runtime


def test_check_reports_missing_keys(monkeypatch):
    monkeypatch.setattr(runtime, "TRANSCRIBER", "whisper")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    errors = runtime.check(needs_transcriber=True, needs_anthropic=True)
    assert any("OPENAI_API_KEY" in e for e in errors)
    assert any("ANTHROPIC_API_KEY" in e for e in errors)


def test_check_uses_assemblyai_key(monkeypatch):
    monkeypatch.setattr(runtime, "TRANSCRIBER", "assemblyai")
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "k")
    assert runtime.check(needs_transcriber=True) == []


def test_check_rejects_unknown_transcriber(monkeypatch):
    monkeypatch.setattr(runtime, "TRANSCRIBER", "nope")
    errors = runtime.check(needs_transcriber=True)
    assert len(errors) == 1 and "UPLOADAI_TRANSCRIBER" in errors[0]


def test_check_missing_ffmpeg(monkeypatch):
    monkeypatch.setattr(runtime, "FFMPEG", "/nonexistent/ffmpeg")
    errors = runtime.check(needs_ffmpeg=True)
    assert any("/nonexistent/ffmpeg" in e for e in errors)


def test_data_dirs(monkeypatch, tmp_path):
    monkeypatch.setattr(runtime, "DATA_DIR", tmp_path / "data")
    assert runtime.records_dir() == tmp_path / "data" / "records"
    assert runtime.uploads_dir().is_dir()
