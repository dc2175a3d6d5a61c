from datetime import datetime

from sectionhash.server.config import ServerRuntimeConfig
from sectionhash.server.deps import ServerState, get_writer, server_state


def test_server_state_init():
    state = ServerState()
    assert state.started_at is None
    assert state.config is not None
    assert state.is_ready is False


def test_server_state_ready():
    state = ServerState()
    state.started_at = datetime.now()
    assert state.is_ready is True


def test_get_writer_follows_server_config(tmp_path, monkeypatch):
    monkeypatch.setattr(
        server_state,
        "config",
        ServerRuntimeConfig(output_dir=tmp_path, file_extension=".txt", hash_length=10),
    )
    writer = get_writer()
    assert writer.output_dir == tmp_path
    assert writer.file_extension == ".txt"
    assert writer.hasher.length == 10
