from types import SimpleNamespace

import pytest

from stylist import __main__ as cli
from stylist import gemini_service
from stylist.session import ApiKeyStore


@pytest.fixture
def key_store(tmp_path, monkeypatch):
    store = ApiKeyStore(tmp_path / "settings.json")
    monkeypatch.setattr(cli, "ApiKeyStore", lambda: store)
    return store


@pytest.fixture
def fake_client(monkeypatch):
    calls = []

    async def generate_content(model, contents, config):
        calls.append(contents)
        inline = SimpleNamespace(data=b"styled-bytes", mime_type="image/png")
        part = SimpleNamespace(inline_data=inline)
        return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])

    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    monkeypatch.setattr(gemini_service, "create_client", lambda api_key: client)
    return calls


def test_generate_writes_output_and_remembers_key(tmp_path, key_store, fake_client, image_bytes):
    model = tmp_path / "model.jpg"
    product = tmp_path / "product.png"
    mask = tmp_path / "mask.png"
    out = tmp_path / "styled.png"
    model.write_bytes(image_bytes(fmt="JPEG"))
    product.write_bytes(image_bytes())
    mask.write_bytes(image_bytes(color=(255, 255, 255)))

    code = cli.main([
        "generate", "--model", str(model), "--product", str(product), "--mask", str(mask),
        "--prompt", "Wear it", "--out", str(out), "--api-key", "cli-key",
    ])

    assert code == 0
    assert out.read_bytes() == b"styled-bytes"
    assert key_store.load() == "cli-key"
    assert len(fake_client[0]) == 4


def test_generate_reports_missing_files(tmp_path, key_store, fake_client, capsys):
    code = cli.main([
        "generate", "--model", str(tmp_path / "missing.jpg"), "--product", str(tmp_path / "p.png"),
        "--prompt", "x", "--api-key", "k",
    ])
    assert code == 2
    assert "ERROR" in capsys.readouterr().err
    assert fake_client == []


def test_generate_without_any_key(tmp_path, key_store, fake_client, image_bytes, monkeypatch, capsys):
    monkeypatch.setattr(cli, "GEMINI_API_KEY", "")
    model = tmp_path / "model.png"
    model.write_bytes(image_bytes())
    code = cli.main(["generate", "--model", str(model), "--product", str(model), "--prompt", "x"])
    assert code == 1
    assert "Please provide your API key." in capsys.readouterr().err
