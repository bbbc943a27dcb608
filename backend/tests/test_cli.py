"""
CLI command tests.
"""

from storefront.models import User

from conftest import ADMIN_EMAIL, PASSWORD


def test_system_init_creates_admin_once(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init", "--password", PASSWORD])
    assert first.exit_code == 0, first.output
    assert f"PASS Created admin: {ADMIN_EMAIL}" in first.output

    second = runner.invoke(args=["system", "init", "--password", PASSWORD])
    assert "PASS Using existing admin" in second.output
    assert db_session.query(User).count() == 1


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    created = runner.invoke(args=["users", "create", "--email", "Staff@Shop.test", "--password", PASSWORD])
    assert created.exit_code == 0, created.output
    assert "PASS Created user: staff@shop.test" in created.output
    assert "cannot enter the admin area" in created.output

    listing = runner.invoke(args=["users", "list"])
    assert "staff@shop.test" in listing.output


def test_users_create_rejects_weak_password(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "create", "--email", "x@shop.test", "--password", "weak"])
    assert result.exit_code == 1
    assert "FAIL Password validation failed" in result.output
