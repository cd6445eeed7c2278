"""
Browser cookie extraction for curseforge.com sessions.

Reads the cookie databases of locally installed browsers:
1. Chromium family (Chrome, Edge, Brave, Chromium, Opera, Vivaldi)
2. Firefox family (Firefox, LibreWolf)

Each extractor returns an ExtractionResult instead of raising, and
extract_cookies_from_browsers() walks them in a fixed priority order until
one yields cookies.
"""

import json
import logging
import os
import shutil
import sqlite3
import sys
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from curseforge_mcp.models import COOKIE_DOMAIN, CookieEntry, ExtractionResult

logger = logging.getLogger(__name__)

NO_COOKIES_MESSAGE = "No browser had curseforge.com cookies"

# Chromium's hard-coded fallback password when no keyring is reachable (Linux)
CHROMIUM_DEFAULT_PASSWORD = b"peanuts"

Attempt = tuple[str, Callable[[], ExtractionResult]]


def _is_macos() -> bool:
    return sys.platform == "darwin"


def _domain_params(domain: str) -> tuple[str, str]:
    """Exact host and SQL LIKE pattern for the domain and its subdomains."""
    bare = domain.lstrip(".")
    return bare, f"%.{bare}"


def _copy_database(source: Path) -> Path:
    """Copy a cookie database to a temp file (browsers keep it locked)."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".sqlite") as tmp:
        tmp_path = Path(tmp.name)
    shutil.copy2(source, tmp_path)
    return tmp_path


class CookieExtractor(ABC):
    """Abstract base class for browser cookie extractors."""

    @abstractmethod
    def get_name(self) -> str:
        """Return the browser name."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this browser is installed."""

    @abstractmethod
    def read_cookies(self, domain: str) -> list[CookieEntry]:
        """Read every cookie for the domain; may raise."""

    def extract(self, domain: str = COOKIE_DOMAIN) -> ExtractionResult:
        """Extract cookies for the domain as an explicit result."""
        name = self.get_name()
        if not self.is_available():
            return ExtractionResult(browser=name, error=f"{name} not installed")
        try:
            cookies = self.read_cookies(domain)
        except Exception as e:
            logger.debug(f"Error extracting {name} cookies: {e}")
            return ExtractionResult(browser=name, error=f"{name}: {e}")
        if not cookies:
            return ExtractionResult(browser=name, error=f"{name} has no {domain} cookies")
        return ExtractionResult(browser=name, cookies=cookies)


class FirefoxCookieExtractor(CookieExtractor):
    """Extract cookies from Firefox-based browsers."""

    def __init__(self, browser_name: str = "Firefox"):
        self.browser_name = browser_name

    def get_name(self) -> str:
        return self.browser_name

    def _get_profiles_base(self) -> Optional[Path]:
        home = Path.home()
        if os.name == "nt":
            app_data = Path(os.environ.get("APPDATA", ""))
            bases = {
                "Firefox": app_data / "Mozilla" / "Firefox" / "Profiles",
                "LibreWolf": app_data / "librewolf" / "Profiles",
            }
        elif _is_macos():
            support = home / "Library" / "Application Support"
            bases = {
                "Firefox": support / "Firefox" / "Profiles",
                "LibreWolf": support / "librewolf" / "Profiles",
            }
        else:
            bases = {
                "Firefox": home / ".mozilla" / "firefox",
                "LibreWolf": home / ".librewolf",
            }
        return bases.get(self.browser_name)

    def _get_profile_paths(self) -> list[Path]:
        """Get profile directories that hold a cookie database."""
        base = self._get_profiles_base()
        if not base or not base.exists():
            return []
        return [
            item for item in sorted(base.iterdir())
            if item.is_dir() and (item / "cookies.sqlite").exists()
        ]

    def is_available(self) -> bool:
        return len(self._get_profile_paths()) > 0

    def read_cookies(self, domain: str) -> list[CookieEntry]:
        for profile in self._get_profile_paths():
            cookies = self._read_profile(profile / "cookies.sqlite", domain)
            if cookies:
                logger.info(f"Found {len(cookies)} cookies in {self.browser_name} profile: {profile.name}")
                return cookies
        return []

    def _read_profile(self, cookie_file: Path, domain: str) -> list[CookieEntry]:
        tmp_path = _copy_database(cookie_file)
        try:
            conn = sqlite3.connect(tmp_path)
            try:
                rows = conn.execute(
                    "SELECT name, value, host, path FROM moz_cookies WHERE host = ? OR host LIKE ?",
                    _domain_params(domain),
                ).fetchall()
            finally:
                conn.close()
        finally:
            tmp_path.unlink(missing_ok=True)

        return [
            CookieEntry(name=name, value=value, domain=host, path=path or "/")
            for name, value, host, path in rows
        ]


class ChromeCookieExtractor(CookieExtractor):
    """Extract cookies from Chrome/Chromium browsers."""

    # Keychain / Secret Service entries holding the cookie password
    SAFE_STORAGE = {
        "Chrome": ("Chrome Safe Storage", "Chrome"),
        "Chromium": ("Chromium Safe Storage", "Chromium"),
        "Edge": ("Microsoft Edge Safe Storage", "Microsoft Edge"),
        "Brave": ("Brave Safe Storage", "Brave"),
        "Opera": ("Opera Safe Storage", "Opera"),
        "Vivaldi": ("Vivaldi Safe Storage", "Vivaldi"),
    }

    def __init__(self, browser_name: str = "Chrome"):
        self.browser_name = browser_name

    def get_name(self) -> str:
        return self.browser_name

    def _get_user_data_dir(self) -> Optional[Path]:
        home = Path.home()
        if os.name == "nt":
            local = Path(os.environ.get("LOCALAPPDATA", ""))
            roaming = Path(os.environ.get("APPDATA", ""))
            bases = {
                "Chrome": local / "Google" / "Chrome" / "User Data",
                "Edge": local / "Microsoft" / "Edge" / "User Data",
                "Brave": local / "BraveSoftware" / "Brave-Browser" / "User Data",
                "Chromium": local / "Chromium" / "User Data",
                "Opera": roaming / "Opera Software" / "Opera Stable",
                "Vivaldi": local / "Vivaldi" / "User Data",
            }
        elif _is_macos():
            support = home / "Library" / "Application Support"
            bases = {
                "Chrome": support / "Google" / "Chrome",
                "Edge": support / "Microsoft Edge",
                "Brave": support / "BraveSoftware" / "Brave-Browser",
                "Chromium": support / "Chromium",
                "Opera": support / "com.operasoftware.Opera",
                "Vivaldi": support / "Vivaldi",
            }
        else:
            config = home / ".config"
            bases = {
                "Chrome": config / "google-chrome",
                "Edge": config / "microsoft-edge",
                "Brave": config / "BraveSoftware" / "Brave-Browser",
                "Chromium": config / "chromium",
                "Opera": config / "opera",
                "Vivaldi": config / "vivaldi",
            }
        return bases.get(self.browser_name)

    def _get_cookie_paths(self) -> list[Path]:
        """Get cookie database paths across the usual profiles."""
        base = self._get_user_data_dir()
        if not base or not base.exists():
            return []

        paths = []
        # Opera keeps its cookies at the top level
        for profile in [base / "Default", base / "Profile 1", base / "Profile 2", base]:
            for cookie_path in [profile / "Network" / "Cookies", profile / "Cookies"]:
                if cookie_path.exists() and cookie_path not in paths:
                    paths.append(cookie_path)
        return paths

    def is_available(self) -> bool:
        return len(self._get_cookie_paths()) > 0

    def read_cookies(self, domain: str) -> list[CookieEntry]:
        key = self._get_encryption_key()
        for cookie_path in self._get_cookie_paths():
            cookies = self._read_database(cookie_path, domain, key)
            if cookies:
                logger.info(f"Found {len(cookies)} cookies in {self.browser_name}: {cookie_path}")
                return cookies
        return []

    def _read_database(self, cookie_path: Path, domain: str, key: Optional[bytes]) -> list[CookieEntry]:
        tmp_path = _copy_database(cookie_path)
        try:
            conn = sqlite3.connect(tmp_path)
            try:
                meta_version = self._meta_version(conn)
                rows = conn.execute(
                    "SELECT name, value, encrypted_value, host_key, path FROM cookies "
                    "WHERE host_key = ? OR host_key LIKE ?",
                    _domain_params(domain),
                ).fetchall()
            finally:
                conn.close()
        finally:
            tmp_path.unlink(missing_ok=True)

        cookies = []
        for name, plain_value, encrypted_value, host, path in rows:
            value = plain_value
            if not value and encrypted_value and key:
                value = self._decrypt_value(encrypted_value, key, strip_host_digest=meta_version >= 24)
            if value:
                cookies.append(CookieEntry(name=name, value=value, domain=host, path=path or "/"))
        return cookies

    @staticmethod
    def _meta_version(conn: sqlite3.Connection) -> int:
        try:
            row = conn.execute("SELECT value FROM meta WHERE key = 'version'").fetchone()
            return int(row[0]) if row else 0
        except (sqlite3.Error, ValueError):
            return 0

    def _get_encryption_key(self) -> Optional[bytes]:
        """Get the encryption key for Chrome cookies."""
        if os.name == "nt":
            return self._get_windows_key()
        return self._get_posix_password()

    def _get_windows_key(self) -> Optional[bytes]:
        """Get the AES key from Local State, unwrapped with DPAPI."""
        import base64

        import win32crypt

        local_state_path = None
        base = self._get_user_data_dir()
        if base:
            local_state_path = base / "Local State"
        if not local_state_path or not local_state_path.exists():
            return None

        with open(local_state_path, "r", encoding="utf-8") as f:
            local_state = json.load(f)

        encrypted_key = base64.b64decode(local_state["os_crypt"]["encrypted_key"])
        # Remove 'DPAPI' prefix
        encrypted_key = encrypted_key[5:]
        return win32crypt.CryptUnprotectData(encrypted_key, None, None, None, 0)[1]

    def _get_posix_password(self) -> bytes:
        """Get the Safe Storage password from Keychain (macOS) or Secret Service (Linux)."""
        service, account = self.SAFE_STORAGE.get(
            self.browser_name, (f"{self.browser_name} Safe Storage", self.browser_name)
        )

        if _is_macos():
            import keyring

            password = keyring.get_password(service, account)
            if password:
                return password.encode("utf-8")
            return CHROMIUM_DEFAULT_PASSWORD

        import secretstorage

        try:
            connection = secretstorage.dbus_init()
            collection = secretstorage.get_default_collection(connection)
            for item in collection.get_all_items():
                if item.get_label() == service:
                    return item.get_secret()
        except secretstorage.exceptions.SecretServiceNotAvailableException as e:
            logger.debug(f"Secret Service unavailable, using default password: {e}")
        return CHROMIUM_DEFAULT_PASSWORD

    def _decrypt_value(self, encrypted_value: bytes, key: bytes, strip_host_digest: bool = False) -> Optional[str]:
        """Decrypt a Chrome cookie value."""
        try:
            if os.name == "nt":
                decrypted = self._decrypt_windows(encrypted_value, key)
            else:
                decrypted = self._decrypt_posix(encrypted_value, key)
        except (ValueError, KeyError) as e:
            logger.debug(f"Decryption error: {e}")
            return None

        if decrypted is None:
            return None
        # Chrome 130+ prefixes the plaintext with SHA256(host_key)
        if strip_host_digest:
            decrypted = decrypted[32:]
        return decrypted.decode("utf-8", errors="ignore")

    def _decrypt_windows(self, encrypted_value: bytes, key: bytes) -> Optional[bytes]:
        """Decrypt a v10/v11 cookie with AES-GCM."""
        from Crypto.Cipher import AES

        if encrypted_value[:3] not in (b"v10", b"v11"):
            import win32crypt
            return win32crypt.CryptUnprotectData(encrypted_value, None, None, None, 0)[1]

        nonce = encrypted_value[3:15]
        ciphertext = encrypted_value[15:-16]
        tag = encrypted_value[-16:]
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        return cipher.decrypt_and_verify(ciphertext, tag)

    def _decrypt_posix(self, encrypted_value: bytes, password: bytes) -> Optional[bytes]:
        """Decrypt a v10/v11 cookie with AES-CBC and a PBKDF2-derived key."""
        from Crypto.Cipher import AES
        from Crypto.Protocol.KDF import PBKDF2

        prefix = encrypted_value[:3]
        if prefix not in (b"v10", b"v11"):
            return encrypted_value

        # v10 on Linux always uses the built-in password
        if prefix == b"v10" and not _is_macos():
            password = CHROMIUM_DEFAULT_PASSWORD

        iterations = 1003 if _is_macos() else 1
        derived_key = PBKDF2(password, b"saltysalt", dkLen=16, count=iterations)
        cipher = AES.new(derived_key, AES.MODE_CBC, b" " * 16)
        decrypted = cipher.decrypt(encrypted_value[3:])

        # Remove PKCS7 padding
        padding_len = decrypted[-1]
        if not 1 <= padding_len <= 16:
            return None
        return decrypted[:-padding_len]


def get_all_extractors() -> list[CookieExtractor]:
    """Get all cookie extractors in priority order."""
    return [
        ChromeCookieExtractor("Chrome"),
        FirefoxCookieExtractor("Firefox"),
        ChromeCookieExtractor("Edge"),
        ChromeCookieExtractor("Brave"),
        ChromeCookieExtractor("Chromium"),
        ChromeCookieExtractor("Opera"),
        ChromeCookieExtractor("Vivaldi"),
        FirefoxCookieExtractor("LibreWolf"),
    ]


def first_successful(attempts: Iterable[Attempt], failure: str = NO_COOKIES_MESSAGE) -> ExtractionResult:
    """
    Run extraction attempts in order and return the first one with cookies.

    An attempt that raises counts as a failed result; the next one is tried.

    Returns:
        The first successful ExtractionResult, or a failure naming no browser.
    """
    for name, attempt in attempts:
        try:
            result = attempt()
        except Exception as e:
            logger.debug(f"Cookie extraction from {name} failed: {e}")
            continue
        if result.ok:
            return result
        logger.debug(f"No cookies from {name}: {result.error}")
    return ExtractionResult(browser="none", error=failure)


def extract_cookies_from_browsers(
    extractors: Optional[Sequence[CookieExtractor]] = None,
    domain: str = COOKIE_DOMAIN,
) -> ExtractionResult:
    """
    Try to extract curseforge.com cookies from all installed browsers.

    Returns:
        ExtractionResult from the first browser that had cookies.
    """
    if extractors is None:
        extractors = get_all_extractors()

    attempts: list[Attempt] = [
        (extractor.get_name(), lambda extractor=extractor: extractor.extract(domain))
        for extractor in extractors
    ]
    result = first_successful(attempts)
    if result.ok:
        logger.info(f"{len(result.cookies)} cookies from {result.browser}")
    return result
