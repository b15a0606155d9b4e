import auth
import db


def test_default_users_can_log_in():
    admin = auth.login("admin", "admin123")
    assert admin is not None
    assert admin.is_admin

    user = auth.login("user", "user123")
    assert user.role == "user"
    assert not user.is_admin


def test_wrong_credentials_return_none():
    assert auth.login("admin", "nope") is None
    assert auth.login("ghost", "admin123") is None


def test_first_run_forces_password_change_until_changed():
    assert db.is_force_password_change()
    auth.change_password("admin", "s3cret-pass")
    assert not db.is_force_password_change()
    assert auth.login("admin", "s3cret-pass") is not None
    assert auth.login("admin", "admin123") is None


def test_init_is_idempotent():
    db.init_db("unused", "unused")
    assert db.fetch_one("SELECT COUNT(*) AS c FROM users")["c"] == 2
    assert auth.login("admin", "admin123") is not None


def test_long_passwords_are_truncated_to_72_bytes():
    hashed = auth.hash_password("x" * 100, rounds=4)
    assert auth.verify_password("x" * 72, hashed)


def test_validate_new_password():
    assert auth.validate_new_password("abcdef", "abcdef") == []
    assert auth.validate_new_password("abc", "abd") == [
        "Password must be at least 6 characters.",
        "Passwords do not match.",
    ]


def test_read_only_user_change_keeps_admin_forced_change():
    auth.change_password("user", "newuserpass")
    assert db.is_force_password_change()
    assert auth.login("user", "newuserpass") is not None

    auth.change_password("admin", "s3cret-pass")
    assert not db.is_force_password_change()
