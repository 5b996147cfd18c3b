from pathlib import Path

from petshop.errors import ErrorKind

from conftest import register


def test_update_profile(auth, account, customer_id):
    result = account.update_profile("Jane Q. Doe Smith", "jane.q@example.com", "0987654321", "34 High Street")

    assert result.ok
    current = auth.get_current_user()
    assert current.name == "Jane Q. Doe Smith"
    assert current.email == "jane.q@example.com"
    assert current.address == "34 High Street"


def test_profile_email_must_stay_unique(auth, account, customer_id):
    register(auth, email="other@example.com")
    result = account.update_profile("Another Name Here", "jane.doe@example.com", "0123456789", "Elm Road")
    assert result.error is ErrorKind.DUPLICATE_EMAIL


def test_keeping_own_email_is_allowed(account, customer_id):
    assert account.update_profile("Jane Doe Smith", "jane.doe@example.com", "1111111111", "12 Main Street").ok


def test_update_profile_requires_login(auth, account, customer_id):
    auth.logout()
    result = account.update_profile("Jane Doe Smith", "jane.doe@example.com", "0123456789", "12 Main Street")
    assert result.error is ErrorKind.NOT_LOGGED_IN


def test_set_profile_image_copies_file(tmp_path, auth, account, customer_id):
    picked = tmp_path / "picked.png"
    picked.write_bytes(b"\x89PNG fake image")

    result = account.set_profile_image(picked)

    assert result.ok
    stored = Path(result.value)
    assert stored != picked
    assert stored.read_bytes() == b"\x89PNG fake image"
    assert stored.parent == (tmp_path / "profile_images").resolve()
    assert auth.get_current_user().profile_image_path == result.value


def test_set_profile_image_rejects_unknown_type(tmp_path, auth, account, customer_id):
    picked = tmp_path / "notes.txt"
    picked.write_text("hello")
    result = account.set_profile_image(picked)
    assert result.error is ErrorKind.STORAGE_ERROR
    assert auth.get_current_user().profile_image_path is None


def test_set_profile_image_missing_source(tmp_path, account, customer_id):
    assert account.set_profile_image(tmp_path / "gone.jpg").error is ErrorKind.STORAGE_ERROR
