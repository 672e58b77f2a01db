import hmac

import bcrypt

from storage_bucket.config import Settings


def hash_password(password: str) -> str:
    # bcrypt.gensalt()產生隨機的鹽值，每次執行都不同，用來防止彩虹表攻擊
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # Malformed hash in configuration
        return False


def verify_admin_credentials(settings: Settings, username: str, password: str) -> bool:
    """Check dashboard credentials against the configured admin account."""
    if not settings.ADMIN_PASSWORD_HASH:
        return False
    username_ok = hmac.compare_digest(username.encode(), settings.ADMIN_USERNAME.encode())
    password_ok = verify_password(password, settings.ADMIN_PASSWORD_HASH)
    return username_ok and password_ok
