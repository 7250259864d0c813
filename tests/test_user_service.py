import hashlib
import threading
from decimal import Decimal

import pytest

from app.core.enums import TransactionType
from app.core.exceptions import NotFoundError, ValidationError
from app.models.transaction_model import TransactionModel
from app.models.user_model import UserModel
from app.services.user_service import PBKDF2_ITERATIONS, UserService, hash_password
from app.services.wallet_service import WalletService


class TestPasswordHashing:
    def test_format_and_digest(self):
        salt = bytes(range(16))
        hashed = hash_password("s3cret-pass", salt=salt)

        scheme, iterations, salt_hex, digest_hex = hashed.split("$")
        assert scheme == "pbkdf2_sha256"
        assert int(iterations) == PBKDF2_ITERATIONS
        assert salt_hex == salt.hex()
        expected = hashlib.pbkdf2_hmac("sha256", b"s3cret-pass", salt, PBKDF2_ITERATIONS)
        assert digest_hex == expected.hex()

    def test_salted(self):
        assert hash_password("same") != hash_password("same")


class TestRegisterUser:
    def test_creates_wallets_and_demo_balances(self, db, config):
        user = UserService(db, config).register_user("Alice@Example.com", "alice", "password1")

        assert user.email == "alice@example.com"
        wallets = WalletService(db, config).list_wallets(user.id)
        assert {w.currency for w in wallets} == set(config.supported_currencies)
        balances = {w.currency: w.available_balance for w in wallets}
        assert balances["USD"] == Decimal("50000")
        assert balances["BTC"] == Decimal("1")
        assert balances["ETH"] == Decimal("10")
        assert balances["SOL"] == Decimal("0")

    def test_demo_balances_are_deposits(self, db, config):
        user = UserService(db, config).register_user("bob@example.com", "bob_1", "password1")

        rows = db.query(TransactionModel).filter_by(user_id=user.id).all()
        assert len(rows) == 3
        assert {r.type for r in rows} == {TransactionType.DEPOSIT.value}
        assert {r.description for r in rows} == {"Initial demo balance"}

    def test_password_is_hashed(self, db, config):
        user = UserService(db, config).register_user("carol@example.com", "carol", "password1")
        assert "password1" not in user.password_hash
        assert user.password_hash.startswith("pbkdf2_sha256$")

    @pytest.mark.parametrize("email,username", [
        ("dave@example.com", "someone_else"),
        ("other@example.com", "dave"),
    ])
    def test_duplicate_rejected(self, db, config, email, username):
        service = UserService(db, config)
        service.register_user("dave@example.com", "dave", "password1")

        with pytest.raises(ValidationError):
            service.register_user(email, username, "password1")

    @pytest.mark.parametrize("email,username,password", [
        ("no-at-sign", "erin", "password1"),
        ("erin@example.com", "er", "password1"),
        ("erin@example.com", "erin", "short"),
    ])
    def test_invalid_input(self, db, config, email, username, password):
        with pytest.raises(ValidationError):
            UserService(db, config).register_user(email, username, password)


class TestConcurrentRegistration:
    """Two sessions registering the same email: one wins, the other gets a validation error."""

    def test_same_email_registers_once(self, session_factory, config):
        barrier = threading.Barrier(2)
        created = []
        errors = []

        def worker(username):
            session = session_factory()
            try:
                service = UserService(session, config)
                barrier.wait()
                created.append(service.register_user("dup@example.com", username, "password1").id)
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(name,)) for name in ("first", "second")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], ValidationError)
        assert errors[0].field == "email"
        session = session_factory()
        try:
            assert session.query(UserModel).filter_by(email="dup@example.com").count() == 1
            assert {t.user_id for t in session.query(TransactionModel).all()} == {created[0]}
        finally:
            session.close()


class TestGetProfile:
    def test_existing_user(self, db, config, funded_user):
        assert UserService(db, config).get_profile(funded_user.id).username == "trader"

    def test_missing_user(self, db, config):
        with pytest.raises(NotFoundError):
            UserService(db, config).get_profile(12345)
