"""
RomUploadClient - High-level async client for the ROM library API.

Example:
    >>> async with RomUploadClient("http://localhost:5000/api") as client:
    ...     platforms = await client.list_platforms()
    ...     result = await client.upload(["mario.nes", "zelda.sfc"])
    ...     print(result.summary())
"""
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .core.api import (
    AsyncAPIClient,
    APIConfig,
    PipelineConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
)
from .core.exceptions import PlatformUnknown
from .core.logging import get_logger
from .core.platforms import (
    DetectionResult,
    HttpPlatformRegistry,
    Platform,
    PlatformDetector,
    PlatformExtensionIndex,
)
from .core.upload import (
    PipelineOrchestrator,
    PipelineRun,
    PipelineRunResult,
    RomFile,
)
from .core.upload.models import Fingerprint
from .core.upload.services import (
    AsyncFileReader,
    ContentHasher,
    HttpBatchUploader,
    HttpDuplicateOracle,
)


class RomUploadClient:
    """
    Client for uploading ROM files to a ROM library server.

    Wires the HTTP implementations of the platform registry, duplicate
    oracle and batch uploader into a :class:`PipelineOrchestrator`.

    Usage:
        >>> async with RomUploadClient() as client:
        ...     run = client.start_upload(paths)
        ...     run.on('selection-required', choose)
        ...     result = await run.wait()

    With custom configuration:
        >>> config = RomUploadClient.create_config(base_url="https://roms.lan/api", verify_ssl=False)
        >>> client = RomUploadClient(config=config)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        config: Optional[APIConfig] = None,
        pipeline_config: Optional[PipelineConfig] = None,
        orchestrator: Optional[PipelineOrchestrator] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL. Overrides ``config.base_url``.
            config: Optional API configuration
            pipeline_config: Optional pipeline tuning
            orchestrator: Pre-built pipeline; no HTTP session is opened when given
        """
        self._config = config or APIConfig.default()
        if base_url:
            self._config.base_url = base_url.rstrip('/')
        self._pipeline_config = pipeline_config or PipelineConfig()
        self._logger = get_logger('romup.client')

        self._api: Optional[AsyncAPIClient] = None
        self._orchestrator: Optional[PipelineOrchestrator] = orchestrator
        self._owns_orchestrator = orchestrator is None
        self._detector = orchestrator.detector if orchestrator else PlatformDetector()

    # =========================================================================
    # Configuration helpers
    # =========================================================================

    @staticmethod
    def create_config(
        base_url: Optional[str] = None,
        proxy: Optional[str] = None,
        proxy_user: Optional[str] = None,
        proxy_pass: Optional[str] = None,
        timeout: float = 3600,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None
    ) -> APIConfig:
        """
        Create API configuration with common options.

        Args:
            base_url: API base URL
            proxy: Proxy URL (e.g., "http://proxy:8080")
            proxy_user: Proxy username
            proxy_pass: Proxy password
            timeout: Total request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            user_agent: Custom user agent string

        Returns:
            APIConfig instance
        """
        proxy_config = None
        if proxy:
            proxy_config = ProxyConfig(
                url=proxy,
                username=proxy_user,
                password=proxy_pass
            )

        config = APIConfig(
            proxy=proxy_config,
            timeout=TimeoutConfig(total=timeout),
            ssl=SSLConfig(verify=verify_ssl),
        )
        if base_url:
            config.base_url = base_url.rstrip('/')
        if user_agent:
            config.user_agent = user_agent
        return config

    @property
    def config(self) -> APIConfig:
        return self._config

    # =========================================================================
    # Context manager
    # =========================================================================

    async def __aenter__(self) -> 'RomUploadClient':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """Open the HTTP session and build the pipeline."""
        if self._api is not None or not self._owns_orchestrator:
            return
        self._api = AsyncAPIClient(self._config)
        await self._api.__aenter__()

        reader = AsyncFileReader()
        self._orchestrator = PipelineOrchestrator(
            registry=HttpPlatformRegistry(self._api),
            oracle=HttpDuplicateOracle(self._api),
            uploader=HttpBatchUploader(self._api, reader, self._pipeline_config.chunk_size),
            hasher=ContentHasher(file_reader=reader, sample_size=self._pipeline_config.fallback_sample_size),
            detector=self._detector,
            config=self._pipeline_config,
        )
        self._logger.info(f"Connected to {self._config.base_url}")

    async def close(self) -> None:
        """Close the client and release resources."""
        if self._api:
            await self._api.close()
            self._api = None
        if self._owns_orchestrator:
            self._orchestrator = None

    @property
    def orchestrator(self) -> PipelineOrchestrator:
        self._ensure_connected()
        return self._orchestrator

    def _ensure_connected(self) -> None:
        if self._orchestrator is None:
            raise RuntimeError("Client is not connected. Use 'async with RomUploadClient()' or call connect().")

    # =========================================================================
    # Platforms
    # =========================================================================

    async def list_platforms(self) -> List[Platform]:
        """Fetch the active platforms."""
        self._ensure_connected()
        return await self._orchestrator.registry.list_active()

    async def detect(
        self,
        files: Iterable[Union[str, Path]],
        platforms: Optional[Sequence[Platform]] = None
    ) -> List[DetectionResult]:
        """
        Detect platforms for file names without uploading anything.

        Args:
            files: File names or paths
            platforms: Platforms to match against; fetched when omitted

        Returns:
            One detection result per file
        """
        if platforms is None:
            platforms = await self.list_platforms()
        index = PlatformExtensionIndex(platforms)
        return [self._detector.detect(Path(f).name, index) for f in files]

    # =========================================================================
    # Upload
    # =========================================================================

    async def fingerprint(self, file_path: Union[str, Path]) -> Fingerprint:
        """Compute the content fingerprint of a local file."""
        self._ensure_connected()
        return await self._orchestrator.hasher.hash(RomFile.from_path(file_path))

    def start_upload(
        self,
        files: Iterable[Union[str, Path, RomFile]],
        platforms: Optional[Sequence[Platform]] = None
    ) -> PipelineRun:
        """
        Start an upload run and return it for event handling.

        Args:
            files: Paths or file handles
            platforms: Registry snapshot to use instead of fetching one

        Returns:
            The running pipeline
        """
        self._ensure_connected()
        return self._orchestrator.start(files, platforms)

    async def upload(
        self,
        files: Iterable[Union[str, Path, RomFile]],
        platform_id: Optional[int] = None,
        include_duplicates: bool = False,
        progress_callback: Optional[Callable[[float], None]] = None
    ) -> PipelineRunResult:
        """
        Upload files without interaction.

        Args:
            files: Paths or file handles
            platform_id: Platform for files detection cannot resolve.
                When None, or not an active platform, those files
                are left out of the upload.
            include_duplicates: Upload files already in the collection
            progress_callback: Called with the overall percentage

        Returns:
            Result of the run

        Example:
            >>> result = await client.upload(["game.bin"], platform_id=3)
        """
        run = self.start_upload(files)

        if include_duplicates:
            def on_duplicates(candidates):
                for candidate in candidates:
                    run.include_duplicate(candidate.id)
            run.on('duplicates', on_duplicates)

        def on_selection(detections):
            for candidate in run.pending_candidates:
                if platform_id is None:
                    continue
                try:
                    run.assign_platform(candidate.id, platform_id)
                except PlatformUnknown as e:
                    self._logger.error(e.message)
                    break
            run.skip_unresolved()
        run.on('selection-required', on_selection)

        if progress_callback:
            run.on('progress', progress_callback)

        return await run.wait()
