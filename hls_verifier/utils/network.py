"""
网络请求模块 - 下载播放列表与分片
"""
from typing import Optional, Dict
from curl_cffi import requests
from hls_verifier.errors import DownloadFailed, MissingDependency
from hls_verifier.utils.config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, VerifierConfig
from hls_verifier.utils.logger import logger


class HttpDownloader:
    """HTTP 下载器 (single attempt per call, no retry)"""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        proxies: Optional[Dict[str, str]] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.timeout = timeout
        self.verify = verify
        self.proxies = proxies
        self.headers = {"User-Agent": user_agent}

    @classmethod
    def from_config(cls, cfg: VerifierConfig) -> "HttpDownloader":
        return cls(
            timeout=cfg.timeout,
            verify=cfg.verify_tls,
            proxies=cfg.proxies(),
            user_agent=cfg.user_agent,
        )

    def probe(self) -> None:
        """Make sure libcurl can be loaded by opening and closing a session."""
        try:
            session = requests.Session()
            session.close()
        except Exception as e:
            raise MissingDependency(f"curl_cffi is not usable: {e}") from e

    def fetch(self, url: str) -> bytes:
        """下载二进制内容

        Raises:
            DownloadFailed: on transport errors or any status other than 200.
        """
        try:
            response = requests.get(
                url=url,
                headers=dict(self.headers),
                timeout=self.timeout,
                verify=self.verify,
                proxies=self.proxies,
                impersonate="chrome",
            )
        except Exception as e:
            logger.warning(f"Download failed {url}: {e}")
            raise DownloadFailed(f"{url}: {e}") from e

        if response.status_code != 200:
            logger.warning(f"HTTP {response.status_code}: {url}")
            raise DownloadFailed(f"{url}: HTTP {response.status_code}")

        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content
