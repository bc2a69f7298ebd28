"""
Compiler executable provisioning.

Turns configuration into the path of a ``reproto`` executable by trying, in
order:

1. An explicit executable path
2. A pinned artifact coordinate, resolved and copied into the plugins directory
3. Automatic download of the latest release matching the version constraint
4. The bare command name, left for PATH lookup at execution time

Usage:
    from reprotokit.provision.provisioner import ExecutableProvisioner, RuntimeEnvironment

    provisioner = ExecutableProvisioner.from_config(config, RuntimeEnvironment.detect())
    executable = provisioner.provision()
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reprotokit.core.directory import get_backend_cache_dir, get_global_cache_dir
from reprotokit.core.download import download_file
from reprotokit.core.exceptions import (
    ArchiveExtractionError,
    ConfigError,
    ProvisioningError,
    ReleaseDiscoveryError,
    ReleaseNotFoundError,
)
from reprotokit.core.filesystem import (
    ArchiveExtractor,
    is_executable_file,
    safe_rmtree,
)
from reprotokit.core.locking import DEFAULT_ARCHIVE_LOCK_TIMEOUT, LockManager
from reprotokit.core.platform import PlatformKey, detect_platform_key
from reprotokit.core.version import Constraint, Version
from reprotokit.provision.artifact import (
    ArtifactResolver,
    LocalRepositoryResolver,
    parse_coordinate,
)
from reprotokit.releases.base import (
    Release,
    ReleaseClient,
    ResolutionStatus,
    create_release_client,
)
from reprotokit.releases.cache import DEFAULT_TTL_MINUTES, VersionCache

logger = logging.getLogger(__name__)

EXECUTABLE_NAME = "reproto"
LOCK_DIR_NAME = "lock"


@dataclass(frozen=True)
class RuntimeEnvironment:
    """
    Process-wide facts resolved once at startup.

    Attributes:
        cache_root: Global cache directory
        platform_key: Host platform, or None when no binaries are published for it
    """

    cache_root: Path
    platform_key: Optional[PlatformKey]

    @classmethod
    def detect(cls, cache_dir: Optional[Path] = None) -> "RuntimeEnvironment":
        """Detect the environment of the running process."""
        cache_root = Path(cache_dir) if cache_dir else get_global_cache_dir()
        return cls(cache_root=cache_root, platform_key=detect_platform_key())


def executable_member_name(platform_key: PlatformKey) -> str:
    """Name of the executable inside a release archive."""
    if platform_key.is_windows:
        return f"{EXECUTABLE_NAME}.exe"
    return EXECUTABLE_NAME


def versioned_executable_name(version: Version, platform_key: PlatformKey) -> str:
    """
    Name of an extracted executable in the plugins directory.

    Example:
        >>> versioned_executable_name(Version.parse("0.3.36"), PlatformKey("linux", "x86_64"))
        'reproto-0.3.36'
    """
    name = f"{EXECUTABLE_NAME}-{version}"
    if platform_key.is_windows:
        name += ".exe"
    return name


def archive_name(version: Version, platform_key: PlatformKey, archive_format: str) -> str:
    """
    Name of the release archive for a version and platform.

    Example:
        >>> archive_name(Version.parse("0.3.36"), PlatformKey("osx", "x86_64"), "tar.gz")
        'reproto-0.3.36-osx-x86_64.tar.gz'
    """
    return f"{EXECUTABLE_NAME}-{version}-{platform_key.platform_string()}.{archive_format}"


class ExecutableProvisioner:
    """
    Locates, downloads or builds the path of the compiler executable.

    Example:
        >>> provisioner = ExecutableProvisioner(
        ...     environment=RuntimeEnvironment.detect(),
        ...     plugins_dir=Path(".reprotokit/plugins"),
        ...     release_client=create_release_client("gcs"),
        ...     constraint=Constraint.parse("0.3"),
        ... )
        >>> provisioner.provision()
        PosixPath('.reprotokit/plugins/reproto-0.3.36')
    """

    def __init__(
        self,
        environment: RuntimeEnvironment,
        plugins_dir: Path,
        release_client: ReleaseClient,
        constraint: Constraint,
        executable: Optional[Path] = None,
        artifact: Optional[str] = None,
        artifact_resolver: Optional[ArtifactResolver] = None,
        download_url: Optional[str] = None,
        archive_format: Optional[str] = None,
        cache_ttl_minutes: float = DEFAULT_TTL_MINUTES,
        lock_timeout: float = DEFAULT_ARCHIVE_LOCK_TIMEOUT,
    ):
        """
        Initialize provisioner.

        Args:
            environment: Cache root and platform of this process
            plugins_dir: Directory for extracted or copied executables
            release_client: Backend used to discover releases
            constraint: Version prefix the downloaded release must match
            executable: Explicit executable path (highest precedence)
            artifact: Pinned artifact coordinate
            artifact_resolver: Resolver for ``artifact`` (default: local repository)
            download_url: Base URL replacing the backend's download location
            archive_format: 'tar.gz' or 'zip' (default: the backend's format)
            cache_ttl_minutes: Time after which the cached version is re-resolved
            lock_timeout: Seconds to wait for another process installing the same archive
        """
        self.environment = environment
        self.plugins_dir = Path(plugins_dir)
        self.release_client = release_client
        self.constraint = constraint
        self.executable = executable
        self.artifact = artifact
        self.artifact_resolver = artifact_resolver or LocalRepositoryResolver()
        self.download_url = download_url.rstrip("/") if download_url else None
        self.archive_format = archive_format or release_client.default_archive_format
        self.lock_timeout = lock_timeout

        self.version_cache = VersionCache.for_backend(
            environment.cache_root, release_client.name, cache_ttl_minutes
        )

    @classmethod
    def from_config(cls, config, environment: RuntimeEnvironment) -> "ExecutableProvisioner":
        """
        Build a provisioner from a parsed ReprotoConfig.

        Args:
            config: ReprotoConfig with paths already resolved
            environment: Runtime environment of this process
        """
        return cls(
            environment=environment,
            plugins_dir=config.plugins_dir,
            release_client=create_release_client(config.backend, config.repository),
            constraint=Constraint.parse(config.version_constraint),
            executable=config.executable,
            artifact=config.artifact,
            download_url=config.download_url,
            archive_format=config.archive_format,
            cache_ttl_minutes=config.cache_ttl_minutes,
        )

    @property
    def backend_cache_dir(self) -> Path:
        return get_backend_cache_dir(self.environment.cache_root, self.release_client.name)

    def provision(self) -> Path:
        """
        Determine the executable to run.

        Returns:
            Absolute path of a provisioned executable, or the bare name
            'reproto' to be looked up on PATH

        Raises:
            ConfigError: If an explicit executable or artifact is not executable
            ReleaseDiscoveryError: If discovery fails and nothing is cached
            ProvisioningError: If the downloaded archive lacks the executable
        """
        executable = self._explicit_executable()

        if executable is None:
            executable = self._artifact_executable()

        if executable is None:
            executable = self._downloaded_executable()

        if executable is None:
            logger.debug(f"Falling back to '{EXECUTABLE_NAME}' on PATH")
            executable = Path(EXECUTABLE_NAME)

        return executable

    def _explicit_executable(self) -> Optional[Path]:
        if not self.executable:
            return None

        executable = Path(self.executable).absolute()

        if not is_executable_file(executable):
            raise ConfigError(f"'executable' is not an executable: {executable}")

        logger.debug(f"Using configured executable: {executable}")
        return executable

    def _artifact_executable(self) -> Optional[Path]:
        if not self.artifact:
            return None

        coordinate = parse_coordinate(self.artifact)
        source = self.artifact_resolver.resolve(coordinate)

        self.plugins_dir.mkdir(parents=True, exist_ok=True)
        executable = self.plugins_dir / source.name
        shutil.copy2(source, executable)

        if not is_executable_file(executable):
            raise ConfigError(f"'artifact' is not executable: {executable}")

        logger.debug(f"Using executable from artifact {coordinate}: {executable}")
        return executable

    def _downloaded_executable(self) -> Optional[Path]:
        platform_key = self.environment.platform_key

        if platform_key is None:
            logger.debug("No release binaries for this platform, skipping download")
            return None

        release = self.resolve_release()

        if release is None:
            return None

        return self._install(release, platform_key)

    def resolve_release(self) -> Optional[Release]:
        """
        Resolve the release to install, consulting the version cache first.

        A fresh cached release matching the constraint is used without any
        network access. A stale one is used only if discovery fails.

        Returns:
            Release, or None if the backend reports no matching release

        Raises:
            ReleaseDiscoveryError: If discovery fails and nothing usable is cached
        """
        entry = self.version_cache.read()

        if entry is not None and not self.constraint.matches(entry.release.version):
            logger.debug(
                f"Cached release {entry.release.version} does not match "
                f"{self.constraint}, ignoring it"
            )
            entry = None

        if entry is not None and not entry.stale:
            logger.debug(f"Using cached release {entry.release.version}")
            return entry.release

        known = entry.release if entry is not None else None

        try:
            result = self.release_client.resolve_latest(self.constraint, known)
        except ReleaseNotFoundError:
            raise
        except ReleaseDiscoveryError as e:
            if known is None:
                raise
            logger.warning(f"{e}; using stale cached release {known.version}")
            return known

        if result.status is ResolutionStatus.NOT_FOUND:
            logger.info(
                f"No {self.release_client.name} release matches {self.constraint}"
            )
            return None

        self.version_cache.write(result.release)
        return result.release

    def archive_url(self, version: Version, archive: str) -> str:
        """Download URL of an archive, honoring the configured base URL."""
        if self.download_url:
            return f"{self.download_url}/{version}/{archive}"
        return self.release_client.download_url(version, archive)

    def _install(self, release: Release, platform_key: PlatformKey) -> Path:
        """Download and extract a release unless its executable is already present."""
        archive = archive_name(release.version, platform_key, self.archive_format)
        cached_archive = self.backend_cache_dir / archive
        executable = self.plugins_dir / versioned_executable_name(
            release.version, platform_key
        )

        lock_manager = LockManager(self.environment.cache_root / LOCK_DIR_NAME)

        with lock_manager.archive_lock(archive, timeout=self.lock_timeout):
            if not cached_archive.is_file():
                download_file(self.archive_url(release.version, archive), cached_archive)

            if is_executable_file(executable):
                logger.info(f"Using existing (cached) executable: {executable}")
                return executable

            try:
                self._extract(cached_archive, executable, platform_key)
            except ArchiveExtractionError:
                logger.warning(f"Evicting unreadable archive: {cached_archive}")
                cached_archive.unlink(missing_ok=True)
                raise

            if not is_executable_file(executable):
                cached_archive.unlink(missing_ok=True)
                raise ProvisioningError(
                    f"Archive ({cached_archive}) did not contain binary: {executable.name}"
                )

        logger.info(f"Provisioned {EXECUTABLE_NAME} {release.version}: {executable}")
        return executable

    def _extract(self, archive: Path, executable: Path, platform_key: PlatformKey) -> None:
        """Extract into a staging directory, then move the executable into place."""
        self.plugins_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".extract-", dir=self.plugins_dir))

        try:
            extractor = ArchiveExtractor(
                executable_member_name(platform_key),
                executable_target_name=executable.name,
            )
            extracted = extractor.extract(archive, staging)

            if extracted is not None:
                extracted.replace(executable)
        finally:
            safe_rmtree(staging, require_prefix=self.plugins_dir)


__all__ = [
    "ExecutableProvisioner",
    "RuntimeEnvironment",
    "EXECUTABLE_NAME",
    "archive_name",
    "executable_member_name",
    "versioned_executable_name",
]
