import json
import stat

from notesflow.adapters.storage_local import StorageLocal
from notesflow.viewmodels.settings_vm import SettingsVM


def test_credential_set_get_remove(tmp_path):
    storage = StorageLocal(root_dir=str(tmp_path))

    assert storage.get("token") is None
    storage.set("token", "tok-1")
    assert storage.get("token") == "tok-1"
    assert StorageLocal(root_dir=str(tmp_path)).get("token") == "tok-1"

    storage.remove("token")
    assert storage.get("token") is None
    assert not (tmp_path / "credentials.json").exists()


def test_credential_remove_is_idempotent(tmp_path):
    storage = StorageLocal(root_dir=str(tmp_path))

    storage.remove("token")
    storage.remove("token")

    assert storage.get("token") is None


def test_credential_file_is_private(tmp_path):
    storage = StorageLocal(root_dir=str(tmp_path))
    storage.set("token", "tok-1")

    mode = stat.S_IMODE((tmp_path / "credentials.json").stat().st_mode)
    assert mode & 0o077 == 0


def test_unreadable_credentials_are_treated_as_absent(tmp_path):
    (tmp_path / "credentials.json").write_text("{not json", encoding="utf-8")

    assert StorageLocal(root_dir=str(tmp_path)).get("token") is None


def test_user_settings_missing_file_and_save(tmp_path):
    storage = StorageLocal(root_dir=str(tmp_path))
    settings_path = tmp_path / "user_settings.json"

    assert storage.load_user_settings() is None
    assert not settings_path.exists()

    vm = SettingsVM()
    storage.save_user_settings(vm.to_dict())

    with settings_path.open("r", encoding="utf-8") as fh:
        persisted = json.load(fh)
    assert persisted == vm.to_dict()
    assert storage.load_user_settings() == vm.to_dict()
