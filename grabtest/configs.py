from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from grabtest import options
from grabtest.const import DEFAULT_CONTENT_LENGTH


class BehaviorSettings(BaseSettings):
    """Behavior of the default handler instance"""

    content_length: int = Field(DEFAULT_CONTENT_LENGTH, description="Size of the synthetic body in bytes.")
    accept_ranges: bool = Field(True, description="Honor byte range requests.")
    allowed_methods: List[str] = Field(
        default_factory=list, description='Method whitelist. Example: ["GET", "HEAD"]. Empty allows every method.'
    )
    blocked_headers: List[str] = Field(
        default_factory=list, description='Response headers to suppress. Example: ["Content-Length"]'
    )
    status_code: int = Field(200, description="Status code of non-partial responses.")
    attachment_filename: Optional[str] = Field(None, description="Serve the body as an attachment with this name.")
    last_modified: Optional[int] = Field(None, description="Last-Modified timestamp in Unix seconds.")
    time_to_first_byte: float = Field(0.0, description="Delay in seconds before each response starts.")
    rate_limit: Optional[int] = Field(None, description="Maximum body throughput in bytes per second.")

    def get_options(self) -> List[options.Option]:
        """
        Translate the settings into behavior options.
        """
        opts = [
            options.content_length(self.content_length),
            options.accept_ranges(self.accept_ranges),
            options.method_whitelist(*self.allowed_methods),
            options.header_blacklist(*self.blocked_headers),
            options.time_to_first_byte(self.time_to_first_byte),
            options.rate_limit(self.rate_limit),
        ]

        if self.status_code != 200:
            opts.append(options.status_code(options.constant_status(self.status_code)))
        if self.attachment_filename:
            opts.append(options.attachment_filename(self.attachment_filename))
        if self.last_modified is not None:
            opts.append(options.last_modified(self.last_modified))

        return opts

    class Config:
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    log_level: str = "INFO"  # The logging level to use.
    host: str = "127.0.0.1"  # The address the server listens on.
    port: int = 8080  # The port the server listens on.
    enable_streaming_progress: bool = False  # Whether to show a progress bar while streaming bodies.
    behavior: BehaviorSettings = Field(default_factory=BehaviorSettings)  # Behavior of the default handler.

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
