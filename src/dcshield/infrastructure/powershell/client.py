"""
PowerShell Client - local or WinRM script execution.

Runs scripts locally through powershell.exe when the target is this machine,
otherwise through pywinrm, trying every transport and authentication
combination until one works.

Transport Priority:
1. HTTPS (5986) with certificate validation
2. HTTPS (5986) without certificate validation (only if allowed)
3. HTTP (5985)

Auth Priority:
1. Negotiate (auto-selects Kerberos or NTLM)
2. Kerberos
3. NTLM
"""

from __future__ import annotations

import logging
import os
import socket
import subprocess
import tempfile
from dataclasses import dataclass
from enum import Enum

import winrm  # pywinrm

logger = logging.getLogger(__name__)

LOCALHOST_NAMES = {"localhost", "127.0.0.1", "::1", ".", "(local)"}


class Transport(Enum):
    """WinRM transport protocols."""

    HTTPS = "https"
    HTTP = "http"


class AuthMethod(Enum):
    """WinRM authentication methods."""

    NEGOTIATE = "negotiate"
    KERBEROS = "kerberos"
    NTLM = "ntlm"


@dataclass
class ConnectionConfig:
    """Configuration for the PowerShell host."""

    hostname: str = "localhost"
    username: str | None = None
    password: str | None = None
    port_http: int = 5985
    port_https: int = 5986
    operation_timeout_sec: int = 120
    verify_ssl: bool = True


@dataclass
class PSResult:
    """Result from a PowerShell execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    return_code: int = -1
    transport_used: str = ""
    error: str = ""


class PowerShellClient:
    """
    PowerShell execution against the domain controller.

    Caches the successful WinRM combination per host/user for the process.
    """

    _connection_cache: dict[str, tuple[Transport, AuthMethod, bool]] = {}

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._session: winrm.Session | None = None
        self._working_transport: Transport | None = None
        self._is_localhost = self._detect_localhost()

    @property
    def is_localhost(self) -> bool:
        return self._is_localhost

    def _detect_localhost(self) -> bool:
        """Match localhost, loopback addresses, '.' and the local machine name."""
        hostname = self.config.hostname.lower().strip()
        if hostname in LOCALHOST_NAMES:
            return True
        try:
            local_name = socket.gethostname().lower()
        except OSError:
            return False
        return hostname in (local_name, local_name.split(".")[0])

    def connect(self) -> bool:
        """
        Establish a WinRM session trying all combinations.

        For localhost, returns True immediately.
        """
        if self._is_localhost:
            return True

        cache_key = f"{self.config.hostname}:{self.config.username}"
        if cache_key in self._connection_cache:
            transport, auth, verify_ssl = self._connection_cache[cache_key]
            logger.info("Using cached connection: %s + %s", transport.value, auth.value)
            if self._try_connect(transport, auth, verify_ssl):
                return True
            del self._connection_cache[cache_key]

        combos = [(Transport.HTTPS, auth, True) for auth in AuthMethod]
        if not self.config.verify_ssl:
            combos += [(Transport.HTTPS, auth, False) for auth in AuthMethod]
        combos += [(Transport.HTTP, auth, False) for auth in AuthMethod]

        for transport, auth, verify_ssl in combos:
            if self._try_connect(transport, auth, verify_ssl):
                self._connection_cache[cache_key] = (transport, auth, verify_ssl)
                if transport is Transport.HTTP:
                    logger.warning("Connected over HTTP (message-level encryption only)")
                return True

        logger.error("All connection attempts failed for %s", self.config.hostname)
        return False

    def _try_connect(self, transport: Transport, auth: AuthMethod, verify_ssl: bool) -> bool:
        port = self.config.port_https if transport is Transport.HTTPS else self.config.port_http
        endpoint = f"{transport.value}://{self.config.hostname}:{port}/wsman"
        logger.debug("Trying: %s with %s (SSL verify: %s)", endpoint, auth.value, verify_ssl)

        try:
            session = winrm.Session(
                target=endpoint,
                auth=(self.config.username, self.config.password),
                transport=auth.value,
                server_cert_validation="validate" if verify_ssl else "ignore",
                operation_timeout_sec=self.config.operation_timeout_sec,
                read_timeout_sec=self.config.operation_timeout_sec + 10,
            )
            result = session.run_cmd("echo", ["OK"])
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("Attempt failed: %s - %s", type(e).__name__, str(e)[:100])
            return False

        if result.status_code == 0 and b"OK" in result.std_out:
            logger.info("Connected: %s + %s", transport.value, auth.value)
            self._session = session
            self._working_transport = transport
            return True
        return False

    def run_ps(self, script: str) -> PSResult:
        """
        Execute a PowerShell script on the target host.

        Args:
            script: PowerShell script content

        Returns:
            PSResult with output and status
        """
        if self._is_localhost:
            return self._run_local_ps(script)

        if not self._session and not self.connect():
            return PSResult(success=False, error="Failed to establish connection")

        try:
            result = self._session.run_ps(script)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("PowerShell execution failed")
            return PSResult(success=False, error=str(e))

        return PSResult(
            success=result.status_code == 0,
            stdout=result.std_out.decode("utf-8", errors="replace"),
            stderr=result.std_err.decode("utf-8", errors="replace"),
            return_code=result.status_code,
            transport_used=self._working_transport.value if self._working_transport else "",
        )

    def _run_local_ps(self, script: str) -> PSResult:
        """Write the script to a temp file and run it with ExecutionPolicy Bypass."""
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".ps1", delete=False, encoding="utf-8-sig"
        ) as f:
            f.write(script)
            script_path = f.name

        cmd = [
            "powershell.exe",
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-File",
            script_path,
        ]
        logger.debug("Executing: %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.operation_timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return PSResult(
                success=False,
                error=f"Script timed out after {self.config.operation_timeout_sec}s",
                transport_used="local",
            )
        except OSError as e:
            return PSResult(success=False, error=str(e), transport_used="local")
        finally:
            try:
                os.unlink(script_path)
            except OSError:
                pass

        return PSResult(
            success=result.returncode == 0,
            stdout=result.stdout,
            stderr=result.stderr,
            return_code=result.returncode,
            transport_used="local",
        )

    def close(self) -> None:
        """Drop the session."""
        self._session = None
