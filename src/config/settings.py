"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use ANNOCODE_ prefix (e.g., ANNOCODE_DARK_STYLE=dracula).

Settings can also be loaded from a .env file in the project root.
"""

import re

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use ANNOCODE_ prefix.

    Examples:
        ANNOCODE_LIGHT_STYLE=friendly
        ANNOCODE_DARK_STYLE=dracula
        ANNOCODE_DEFAULT_TAB_SIZE=2
    """

    model_config = SettingsConfigDict(
        env_prefix="ANNOCODE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Highlighter configuration
    light_style: str = Field(
        default="default",
        description="Pygments style providing the light palette",
    )

    dark_style: str = Field(
        default="monokai",
        description="Pygments style providing the dark palette",
    )

    fallback_language: str = Field(
        default="text",
        description="Language used when a block's language has no lexer",
    )

    # Directive defaults
    default_tab_size: int = Field(
        default=4,
        gt=0,
        description="tab-size used when a block does not set one",
    )

    default_start_line: int = Field(
        default=1,
        description="start-line used when a block does not set one",
    )

    flexible_indents: bool = Field(
        default=True,
        description="flexible-indents used when a block does not set one",
    )

    # Comment annotations
    comment_tag: str = Field(
        default="code",
        description="Tag introducing line annotations, as in [!code warning]",
    )

    # Logging
    log_verbosity: int = Field(
        default=1,
        description="Verbosity used by LOG() when no program state is bound",
    )

    def commentRegex_make(self) -> re.Pattern:
        """
        Build the trailing annotation comment pattern.

        Recognizes the comment introducers //, /*, <!--, #, --, % or %%,
        ; or ;; and a quote, followed by [!<tag> keyword] and free text,
        with an optional */ or --> closer.

        Returns:
            Compiled pattern; group 1 is the keyword, group 2 the message

        Example:
            >>> settings = AppSettings()
            >>> settings.commentRegex_make().search('x = 1  # [!code ++]').group(1)
            '++'
        """
        tag = re.escape(self.comment_tag)
        return re.compile(
            r'(?://|/\*|<!--|#|--|%{1,2}|;{1,2}|"|\')'
            r'\s*\[!' + tag + r'\s*([^\]]+?)\s*\]\s*(.*?)\s*(?:\*/|-->)?$'
        )


# Singleton instance - import this in your code
appsettings = AppSettings()
