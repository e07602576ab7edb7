#!/usr/bin/env python3
"""
OpenRouter Launcher

Launch AI coding tools (Claude Code, Aider, OpenCode, Codex CLI) against
OpenRouter's model catalog, with model aliases, a cached model list and
persistent preferences.
"""

import asyncio
import os
import re
import sys
import argparse
import json
import shutil
import subprocess
import stat
import logging
import tempfile
import time
from dataclasses import dataclass, asdict, replace
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx
import nest_asyncio
from dotenv import load_dotenv
from InquirerPy import inquirer
from InquirerPy.base.control import Choice
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

__version__ = "1.0.0"

logger = logging.getLogger("openrouter_launch")

# Status and prompts go to stderr so stdout stays with the launched tool
console = Console(stderr=True)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1"
OPENROUTER_MODELS_URL = f"{OPENROUTER_API_URL}/models"
OPENROUTER_AUTH_URL = f"{OPENROUTER_API_URL}/auth/key"
OPENROUTER_ANTHROPIC_BASE_URL = "https://openrouter.ai/api"

CACHE_TTL_SECONDS = 3600
PRICE_UNIT = Decimal(1_000_000)
FREE_MODEL_SUFFIX = ":free"

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]+/[A-Za-z0-9._-]+")

CODING_MODEL_PREFIXES = (
    "anthropic/claude",
    "openai/gpt-4",
    "openai/o1",
    "openai/o3",
    "google/gemini",
    "deepseek/deepseek",
    "meta-llama/llama",
    "qwen/qwen",
    "mistralai/mistral",
    "mistralai/codestral",
    "x-ai/grok",
)

MODEL_ALIASES: Dict[str, str] = {
    "sonnet": "anthropic/claude-sonnet-4",
    "sonnet4": "anthropic/claude-sonnet-4",
    "opus": "anthropic/claude-opus-4",
    "opus4": "anthropic/claude-opus-4",
    "haiku": "anthropic/claude-haiku",
    "flash": "google/gemini-2.0-flash",
    "gemini": "google/gemini-2.5-pro",
    "gemini-pro": "google/gemini-2.5-pro",
    "gpt4": "openai/gpt-4o",
    "gpt4o": "openai/gpt-4o",
    "gpt4-mini": "openai/gpt-4o-mini",
    "gpt4o-mini": "openai/gpt-4o-mini",
    "deepseek": "deepseek/deepseek-chat-v3",
    "llama": "meta-llama/llama-3.3-70b-instruct",
    "llama3": "meta-llama/llama-3.3-70b-instruct",
    "qwen": "qwen/qwen-2.5-coder-32b-instruct",
    "qwen-coder": "qwen/qwen-2.5-coder-32b-instruct",
}

VALID_SORT_ORDERS = ("price", "throughput", "latency")


class UnknownModelError(ValueError):
    """Raised when an identifier is neither an alias, a known model, nor well-formed."""

    def __init__(self, identifier: str):
        super().__init__(f"Unknown model: {identifier}")
        self.identifier = identifier


def format_price(price: Decimal) -> str:
    """Format a per-million price for display (3 -> $3, 0.1 -> $0.10)."""
    if price >= 1:
        try:
            return f"${price.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}"
        except InvalidOperation:
            # More digits than the context precision allows
            return f"${price:.0f}"
    elif price > 0:
        return f"${price.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"
    return "$0"


def format_decimal(value: Decimal) -> str:
    """Plain decimal text without exponent or trailing zeros."""
    return format(value.normalize(), "f")


def parse_price(value) -> Optional[Decimal]:
    """Parse a price field, returning None unless it is a finite non-negative number."""
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


@dataclass(frozen=True)
class ModelRecord:
    """A model identifier with its per-million-token prices."""
    id: str
    prompt_price: Decimal
    completion_price: Decimal

    @property
    def pricing(self) -> str:
        return f"{format_price(self.prompt_price)}/{format_price(self.completion_price)} per 1M tokens"

    def to_line(self) -> str:
        return f"{self.id}|{format_decimal(self.prompt_price)}|{format_decimal(self.completion_price)}"

    @classmethod
    def from_line(cls, line: str) -> Optional["ModelRecord"]:
        """Parse an `id|prompt|completion` cache line, or return None if malformed."""
        fields = line.strip().split("|")
        if len(fields) != 3 or not all(fields):
            return None

        prompt_price = parse_price(fields[1])
        completion_price = parse_price(fields[2])
        if prompt_price is None or completion_price is None:
            return None

        return cls(id=fields[0], prompt_price=prompt_price, completion_price=completion_price)


def _record(model_id: str, prompt: str, completion: str) -> ModelRecord:
    return ModelRecord(model_id, Decimal(prompt), Decimal(completion))


# Used when the API is unreachable and no cache exists
FALLBACK_MODELS: Sequence[ModelRecord] = (
    _record("anthropic/claude-sonnet-4", "3", "15"),
    _record("anthropic/claude-opus-4", "15", "75"),
    _record("anthropic/claude-haiku", "0.25", "1.25"),
    _record("google/gemini-2.0-flash", "0.10", "0.40"),
    _record("google/gemini-2.5-pro", "1.25", "10"),
    _record("openai/gpt-4o", "2.50", "10"),
    _record("openai/gpt-4o-mini", "0.15", "0.60"),
    _record("deepseek/deepseek-chat-v3", "0.14", "0.28"),
    _record("meta-llama/llama-3.3-70b-instruct", "0.30", "0.40"),
    _record("qwen/qwen-2.5-coder-32b-instruct", "0.20", "0.20"),
)


def is_coding_model(model_id: str, prefixes: Iterable[str] = CODING_MODEL_PREFIXES) -> bool:
    return any(model_id.startswith(prefix) for prefix in prefixes)


def prioritize_coding_models(
    records: Iterable[ModelRecord], prefixes: Sequence[str] = CODING_MODEL_PREFIXES
) -> List[ModelRecord]:
    """Stable two-bucket partition: coding models first, source order kept in each bucket."""
    coding: List[ModelRecord] = []
    other: List[ModelRecord] = []
    for record in records:
        (coding if is_coding_model(record.id, prefixes) else other).append(record)
    return coding + other


class IdentifierResolver:
    """Resolve aliases and validate `provider/model` identifiers."""

    def __init__(
        self,
        aliases: Mapping[str, str] = MODEL_ALIASES,
        fallback: Sequence[ModelRecord] = FALLBACK_MODELS,
    ):
        self.aliases = MappingProxyType(dict(aliases))
        self.fallback_ids = frozenset(record.id for record in fallback)

    def resolve_alias(self, name: str) -> str:
        return self.aliases.get(name, name)

    def exists(self, identifier: str, catalog: Sequence[ModelRecord]) -> bool:
        """Check the catalog, then the built-in list, then the identifier shape.

        Any well-formed `provider/model` string is accepted so that models
        newer than the cached catalog still work.
        """
        if any(record.id == identifier for record in catalog):
            return True
        if identifier in self.fallback_ids:
            return True
        return IDENTIFIER_PATTERN.fullmatch(identifier) is not None

    def resolve(self, name: str, catalog: Sequence[ModelRecord]) -> str:
        identifier = self.resolve_alias(name)
        if self.exists(identifier, catalog):
            return identifier
        raise UnknownModelError(name)


class ModelCacheStore:
    """Pipe-delimited model list on disk, fresh while its mtime is younger than the TTL."""

    def __init__(
        self,
        path: Path,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        prefixes: Sequence[str] = CODING_MODEL_PREFIXES,
        clock: Callable[[], float] = time.time,
    ):
        self.path = Path(path)
        self.ttl_seconds = ttl_seconds
        self.prefixes = prefixes
        self.clock = clock

    def exists(self) -> bool:
        return self.path.is_file()

    def is_fresh(self) -> bool:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return False
        return self.clock() - mtime < self.ttl_seconds

    def read(self) -> Optional[List[ModelRecord]]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Model cache not readable at %s: %s", self.path, e)
            return None

        records = []
        for line in content.splitlines():
            if record := ModelRecord.from_line(line):
                records.append(record)

        if not records:
            return None
        return prioritize_coding_models(records, self.prefixes)

    def write(self, records: Iterable[ModelRecord]) -> None:
        """Replace the cache file; the old file survives a failed write."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{record.to_line()}\n" for record in records)

        fd, temp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".models-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise


def parse_catalog_entries(entries: Iterable) -> List[ModelRecord]:
    """Convert OpenRouter `/models` entries to records sorted by their cache line.

    Free-tier (`:free`) models and entries without usable pricing are skipped.
    """
    records = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        model_id = entry.get("id")
        pricing = entry.get("pricing")
        if not model_id or not isinstance(model_id, str) or not isinstance(pricing, dict):
            continue
        prompt, completion = pricing.get("prompt"), pricing.get("completion")
        if prompt in (None, "") or completion in (None, ""):
            continue
        if model_id.endswith(FREE_MODEL_SUFFIX):
            continue

        prompt_price = parse_price(prompt)
        completion_price = parse_price(completion)
        if prompt_price is None or completion_price is None:
            continue

        try:
            prompt_price *= PRICE_UNIT
            completion_price *= PRICE_UNIT
        except DecimalException:
            logger.debug("Skipping %s: price out of range", model_id)
            continue
        if not (prompt_price.is_finite() and completion_price.is_finite()):
            continue

        records.append(ModelRecord(model_id, prompt_price, completion_price))

    records.sort(key=ModelRecord.to_line)
    return records


class ModelCatalogLoader:
    """Load the model catalog: fresh cache, API fetch, stale cache, then built-in list."""

    def __init__(
        self,
        store: ModelCacheStore,
        endpoint: str = OPENROUTER_MODELS_URL,
        fallback: Sequence[ModelRecord] = FALLBACK_MODELS,
        timeout: float = 30.0,
    ):
        self.store = store
        self.endpoint = endpoint
        self.fallback = fallback
        self.timeout = timeout
        self.source: Optional[str] = None

    async def fetch_models(self) -> Optional[List[ModelRecord]]:
        """Single GET against the models endpoint, no retries."""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.endpoint, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug("Model fetch failed: %s", e)
            return None

        if response.status_code != 200:
            logger.debug("Model fetch returned HTTP %s", response.status_code)
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.debug("Model fetch returned invalid JSON: %s", e)
            return None

        entries = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            logger.debug("Model fetch response has no data list")
            return None

        records = parse_catalog_entries(entries)
        return records or None

    async def refresh(self) -> bool:
        """Fetch the catalog and write it to the cache. Returns True if the fetch succeeded."""
        with console.status("[bold green]Fetching models from OpenRouter...[/bold green]"):
            records = await self.fetch_models()

        if not records:
            console.print("[yellow]Failed to fetch models from OpenRouter[/yellow]")
            return False

        try:
            self.store.write(records)
        except OSError as e:
            logger.warning("Could not write model cache %s: %s", self.store.path, e)
        else:
            console.print(f"[green]Model list updated ({len(records)} models)[/green]")
        return True

    async def load(self, force_refresh: bool = False) -> List[ModelRecord]:
        if not force_refresh and self.store.is_fresh():
            if cached := self.store.read():
                self.source = "cache"
                return cached

        if await self.refresh():
            if cached := self.store.read():
                self.source = "remote"
                return cached

        if self.store.exists():
            if cached := self.store.read():
                console.print("[blue]Info:[/blue] Using cached model list (may be outdated)")
                self.source = "stale"
                return cached

        console.print("[blue]Info:[/blue] Using built-in model list")
        self.source = "builtin"
        return list(self.fallback)


def get_cache_path() -> Path:
    """Get cache file path."""
    return Path.home() / ".cache" / "openrouter" / "models.txt"


_resolver = IdentifierResolver()


async def load_catalog(force_refresh: bool = False) -> List[ModelRecord]:
    return await ModelCatalogLoader(ModelCacheStore(get_cache_path())).load(force_refresh)


def resolve_alias(name: str) -> str:
    return _resolver.resolve_alias(name)


def identifier_exists(identifier: str, catalog: Sequence[ModelRecord]) -> bool:
    return _resolver.exists(identifier, catalog)


def resolve_identifier(name: str, catalog: Sequence[ModelRecord]) -> str:
    return _resolver.resolve(name, catalog)


def alias_table() -> Mapping[str, str]:
    """Read-only alias mapping, for help text."""
    return _resolver.aliases


def get_model_pricing(identifier: str, catalog: Sequence[ModelRecord]) -> str:
    for record in catalog:
        if record.id == identifier:
            return record.pricing
    return "unknown pricing"


@dataclass
class LauncherConfig:
    """Persistent launcher preferences."""
    api_key: Optional[str] = None
    default_model: Optional[str] = None
    data_collection: str = "deny"
    provider_sort: Optional[str] = None

    @classmethod
    def load_from_file(cls, config_path: Path) -> "LauncherConfig":
        """Load configuration from JSON file."""
        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    data = json.load(f)
                return cls(**data)
            except (json.JSONDecodeError, TypeError) as e:
                console.print(f"[bold yellow]Warning:[/bold yellow] Could not load config: {escape(str(e))}")
                console.print("Using default configuration.")
        return cls()

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file, readable by the owner only."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        mode = stat.S_IRUSR | stat.S_IWUSR
        fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        # O_CREAT only applies the mode to new files
        os.fchmod(fd, mode)
        with os.fdopen(fd, 'w') as f:
            json.dump(asdict(self), f, indent=2)


def get_config_path(args) -> Path:
    """Get configuration file path."""
    if args.config_path:
        return args.config_path
    return Path.home() / ".config" / "openrouter-launch" / "config.json"


def validate_api_key(api_key: str) -> bool:
    """Validate OpenRouter API key format."""
    if not api_key:
        raise ValueError("API key not found")

    if not api_key.startswith("sk-or-"):
        raise ValueError("Invalid API key format (should start with 'sk-or-')")

    return True


def mask_api_key(api_key: str) -> str:
    if len(api_key) <= 12:
        return "*" * len(api_key)
    return f"{api_key[:6]}...{api_key[-4:]}"


async def verify_api_key(api_key: str) -> bool:
    """Check the key against OpenRouter's auth endpoint."""
    console.print("[blue]Info:[/blue] Validating API key...")
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                OPENROUTER_AUTH_URL,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=30.0
            )
    except httpx.HTTPError as e:
        logger.debug("Key validation request failed: %s", e)
        console.print("[bold red]Error:[/bold red] Could not connect to OpenRouter API")
        console.print("Check your internet connection")
        return False

    if response.status_code == 200:
        console.print("[green]✓ API key validated successfully[/green]")
        return True
    elif response.status_code == 401:
        console.print("[bold red]Error:[/bold red] Invalid API key (authentication failed)")
    else:
        console.print(f"[bold red]Error:[/bold red] Unexpected response from OpenRouter (HTTP {response.status_code})")
    return False


async def prompt_for_api_key(config: LauncherConfig, config_path: Path) -> str:
    """Ask for a key until one validates, optionally saving it."""
    console.print("")
    console.print("OpenRouter API key not found.")
    console.print("Get your key at: https://openrouter.ai/keys")
    console.print("")

    while True:
        api_key = inquirer.secret(message="Enter your OpenRouter API key:").execute()

        try:
            validate_api_key(api_key)
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            continue

        if not await verify_api_key(api_key):
            continue

        if inquirer.confirm(message="Save API key to config?", default=True).execute():
            config.api_key = api_key
            config.save_to_file(config_path)
        return api_key


async def get_api_key(config: LauncherConfig, config_path: Path, cli_key: Optional[str] = None) -> str:
    """Resolve the API key: --key, environment, saved config, then prompt."""
    if cli_key:
        try:
            validate_api_key(cli_key)
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            sys.exit(1)
        if not await verify_api_key(cli_key):
            sys.exit(1)
        return cli_key

    if api_key := os.environ.get("OPENROUTER_API_KEY"):
        logger.info("Using API key from OPENROUTER_API_KEY")
        return api_key

    if config.api_key:
        console.print("[blue]Info:[/blue] Using API key from config")
        return config.api_key

    return await prompt_for_api_key(config, config_path)


def select_model_interactive(models: List[ModelRecord]) -> Optional[str]:
    """Fuzzy-search model picker. Returns None if cancelled."""
    if not models:
        console.print("[bold red]Error:[/bold red] No models available")
        return None

    # Alias names go into the label so the fuzzy filter matches them too (gpt4 -> openai/gpt-4o)
    aliases_by_model: Dict[str, List[str]] = {}
    for alias, target in alias_table().items():
        aliases_by_model.setdefault(target, []).append(alias)

    choices = []
    for model in models:
        name = f"{model.id:<40} {model.pricing}"
        if model.id in aliases_by_model:
            name += f"  [{', '.join(aliases_by_model[model.id])}]"
        choices.append(Choice(value=model.id, name=name))

    console.print("")
    console.print("[dim]↑↓ Navigate • Type to filter • Enter to select • Ctrl+C to cancel[/dim]")
    console.print("")

    try:
        return inquirer.fuzzy(
            message="Select a model",
            choices=choices,
            max_height=15,
        ).execute()
    except KeyboardInterrupt:
        return None


def maybe_save_default_model(model: str, config: LauncherConfig, config_path: Path) -> None:
    """Offer to save an interactively picked model as the default."""
    if model == config.default_model:
        return

    if inquirer.confirm(message=f"Save '{model}' as default model?", default=False).execute():
        config.default_model = model
        config.save_to_file(config_path)


def command_exists(command: str) -> bool:
    return shutil.which(command) is not None


INSTALL_HINTS = {
    "claude": "Install it from: https://docs.anthropic.com/en/docs/claude-code",
    "aider": "Install it from: https://aider.chat/docs/install.html",
    "opencode": "Install it from: https://github.com/opencode-ai/opencode",
    "codex": "Install it: npm install -g @openai/codex",
}

TOOL_NAMES = {
    "claude": "Claude Code",
    "aider": "Aider",
    "opencode": "OpenCode",
    "codex": "Codex CLI",
}


def launch_tool(cmd: List[str], env_overrides: Dict[str, str], dry_run: bool = False) -> None:
    """Run a tool with the OpenRouter environment and exit with its return code."""
    if dry_run:
        console.print(f"[bold]Would execute:[/bold] {escape(' '.join(cmd))}")
        for name, value in env_overrides.items():
            shown = mask_api_key(value) if name in ("ANTHROPIC_AUTH_TOKEN", "OPENROUTER_API_KEY") else value
            console.print(f"  {name}={escape(shown)}")
        return

    env = os.environ.copy()
    env.update(env_overrides)

    try:
        result = subprocess.run(cmd, env=env)
    except FileNotFoundError:
        tool = cmd[0]
        console.print(f"[bold red]Error:[/bold red] {TOOL_NAMES.get(tool, tool)} not found.")
        console.print(INSTALL_HINTS.get(tool, f"Please ensure {tool} is installed and in your PATH."))
        sys.exit(1)

    sys.exit(result.returncode)


def ensure_installed(tool: str) -> None:
    if not command_exists(tool):
        console.print(f"[bold red]Error:[/bold red] {TOOL_NAMES[tool]} not found")
        console.print(INSTALL_HINTS[tool])
        sys.exit(1)


def print_launch_summary(tool: str, model: str, config: LauncherConfig, extra: Sequence[str] = ()) -> None:
    console.print("")
    console.print(f"[bold green]Launching {TOOL_NAMES[tool]} with OpenRouter...[/bold green]")
    console.print(f"  Model: {escape(model)}")
    for line in extra:
        console.print(f"  {line}")
    console.print(f"  Data collection: {config.data_collection}")
    if config.provider_sort:
        console.print(f"  Provider sort: {config.provider_sort}")
    console.print("")


def launch_claude(model: str, config: LauncherConfig, args: List[str], dry_run: bool = False) -> None:
    """Claude Code speaks the Anthropic API, so point its base URL at OpenRouter."""
    if not dry_run:
        ensure_installed("claude")

    env = {
        "ANTHROPIC_BASE_URL": OPENROUTER_ANTHROPIC_BASE_URL,
        "ANTHROPIC_API_KEY": "",
        "ANTHROPIC_AUTH_TOKEN": config.api_key or "",
        "ANTHROPIC_MODEL": model,
    }
    print_launch_summary("claude", model, config, [f"Base URL: {OPENROUTER_ANTHROPIC_BASE_URL}"])
    # data_collection and provider_sort need request body fields Claude Code can't send;
    # account-wide settings live at https://openrouter.ai/settings/privacy
    launch_tool(["claude"] + args, env, dry_run)


def launch_aider(model: str, config: LauncherConfig, args: List[str], dry_run: bool = False) -> None:
    if not dry_run:
        ensure_installed("aider")

    aider_model = f"openrouter/{model}"
    print_launch_summary("aider", aider_model, config)
    launch_tool(["aider", "--model", aider_model] + args, {"OPENROUTER_API_KEY": config.api_key or ""}, dry_run)


def launch_opencode(model: str, config: LauncherConfig, args: List[str], dry_run: bool = False) -> None:
    if not dry_run:
        ensure_installed("opencode")

    print_launch_summary("opencode", model, config)
    console.print("[dim]Note: OpenCode may use its own default OpenRouter models[/dim]")
    console.print("[dim]      unless you configure ~/.opencode.json with your preferred model.[/dim]")
    console.print("")
    launch_tool(["opencode"] + args, {"OPENROUTER_API_KEY": config.api_key or ""}, dry_run)


CODEX_CONFIG_FILE = Path.home() / ".codex" / "config.toml"

CODEX_PROVIDER_CONFIG = """\
[model_providers.openrouter]
name = "OpenRouter"
base_url = "https://openrouter.ai/api/v1"
env_key = "OPENROUTER_API_KEY"
wire_api = "chat"
"""


def ensure_codex_provider(config_file: Path = CODEX_CONFIG_FILE) -> bool:
    """Append the OpenRouter provider block to Codex's config.toml if missing."""
    if config_file.exists() and "[model_providers.openrouter]" in config_file.read_text(encoding="utf-8"):
        return True

    console.print("[blue]Info:[/blue] OpenRouter provider not found in Codex config")
    console.print(f"[blue]Info:[/blue] Adding to {config_file}...")
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        if config_file.exists():
            with open(config_file, "a", encoding="utf-8") as f:
                f.write("\n" + CODEX_PROVIDER_CONFIG)
        else:
            config_file.write_text(CODEX_PROVIDER_CONFIG, encoding="utf-8")
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] Failed to update Codex config: {escape(str(e))}")
        return False

    console.print("[green]✓ Added OpenRouter provider to Codex config[/green]")
    return True


def launch_codex(model: str, config: LauncherConfig, args: List[str], dry_run: bool = False) -> None:
    if not dry_run:
        ensure_installed("codex")
        if not ensure_codex_provider(CODEX_CONFIG_FILE):
            console.print(f"To configure manually, add this to {CODEX_CONFIG_FILE}:")
            console.print(escape(CODEX_PROVIDER_CONFIG))
            sys.exit(1)

    print_launch_summary("codex", model, config, ["Provider: openrouter"])
    cmd = ["codex", "--model", model, "-c", 'model_provider="openrouter"'] + args
    launch_tool(cmd, {"OPENROUTER_API_KEY": config.api_key or ""}, dry_run)


LAUNCHERS = {
    "claude": launch_claude,
    "aider": launch_aider,
    "opencode": launch_opencode,
    "codex": launch_codex,
}

INTEGRATION_ALIASES = {"oc": "opencode"}


def normalize_integration(name: str) -> Optional[str]:
    name = name.lower()
    name = INTEGRATION_ALIASES.get(name, name)
    return name if name in LAUNCHERS else None


def build_epilog() -> str:
    aliases = "\n".join(f"    {alias:<12}-> {target}" for alias, target in alias_table().items())
    return f"""\
Model Aliases:
{aliases}

Examples:
    openrouter-launch                    # Interactive mode (launches Claude Code)
    openrouter-launch claude -m sonnet   # Use Claude Sonnet with Claude Code
    openrouter-launch aider -m sonnet    # Launch Aider with Claude Sonnet
    openrouter-launch oc                 # Launch OpenCode
    openrouter-launch codex -m gpt4o     # Launch Codex CLI with GPT-4o
    openrouter-launch --sort price       # Prefer cheapest providers
    openrouter-launch claude -- --resume # Pass arguments through to the tool

For more information: https://openrouter.ai/docs
"""


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments; unknown options are passed through to the tool."""
    parser = argparse.ArgumentParser(
        prog="openrouter-launch",
        usage="%(prog)s [integration] [options] [-- tool args ...]",
        description="Launch AI coding tools with OpenRouter",
        epilog=build_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "integration",
        nargs="?",
        default="claude",
        help="Integration to launch: claude, aider, opencode (oc), codex"
    )
    parser.add_argument(
        "-m", "--model",
        help="Use specific model (name or alias)"
    )
    parser.add_argument(
        "-k", "--key",
        help="Use API key (overrides saved key)"
    )
    parser.add_argument(
        "--save-default",
        action="store_true",
        help="Save the selected model as default"
    )
    parser.add_argument(
        "--refresh-models",
        action="store_true",
        help="Force refresh model list from API"
    )
    parser.add_argument(
        "--allow-data-collection",
        action="store_true",
        help="Allow providers to collect/train on data"
    )
    parser.add_argument(
        "--sort",
        choices=VALID_SORT_ORDERS,
        help="Provider sort order"
    )
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List available models and exit"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the command and environment without launching"
    )
    parser.add_argument(
        "--config-path",
        type=Path,
        help="Path to configuration file (default: ~/.config/openrouter-launch/config.json)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    argv = sys.argv[1:] if argv is None else list(argv)
    passthrough: List[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, passthrough = argv[:split], argv[split + 1:]

    args, extra = parser.parse_known_args(argv)
    args.tool_args = extra + passthrough
    return args


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def list_models_command(models: List[ModelRecord]) -> None:
    """Print the catalog as a table."""
    table = Table(title="Available OpenRouter Models", box=box.MINIMAL_HEAVY_HEAD)
    table.add_column("ID", style="cyan")
    table.add_column("Pricing", style="green")

    for model in models:
        table.add_row(model.id, model.pricing)

    console.print(table)


async def main(argv: Optional[List[str]] = None):
    """Main function."""
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    integration = normalize_integration(args.integration)
    if integration is None:
        console.print(f"[bold red]Error:[/bold red] Unknown integration: {escape(args.integration)}")
        console.print("Supported: claude, aider, opencode, codex")
        sys.exit(1)

    config_path = get_config_path(args)
    config = LauncherConfig.load_from_file(config_path)
    cache_path = get_cache_path()
    logger.debug("Config path: %s", config_path)
    logger.debug("Cache path: %s", cache_path)

    loader = ModelCatalogLoader(ModelCacheStore(cache_path))

    if args.list_models:
        models = await loader.load(args.refresh_models)
        logger.debug("Catalog source: %s", loader.source)
        list_models_command(models)
        return

    # Session-only overrides; never written back to the config file
    session = replace(config)
    if args.allow_data_collection:
        session.data_collection = "allow"
    if args.sort:
        session.provider_sort = args.sort

    session.api_key = await get_api_key(config, config_path, args.key)

    picked_interactively = False
    if args.model:
        models = await loader.load(args.refresh_models)
        try:
            selected = resolve_identifier(args.model, models)
        except UnknownModelError as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            console.print("Use --help to see available models and aliases")
            sys.exit(1)
    elif config.default_model:
        console.print(f"[blue]Info:[/blue] Using default model: {escape(config.default_model)}")
        selected = config.default_model
    else:
        models = await loader.load(args.refresh_models)
        selected = select_model_interactive(models)
        if not selected:
            console.print("[bold red]Error:[/bold red] No model selected")
            sys.exit(1)
        picked_interactively = True

    if args.save_default:
        config.api_key = session.api_key
        config.default_model = selected
        config.save_to_file(config_path)
    elif picked_interactively:
        maybe_save_default_model(selected, config, config_path)

    session.default_model = selected
    LAUNCHERS[integration](selected, session, args.tool_args, args.dry_run)


def run_main_sync(argv: Optional[List[str]] = None):
    """Run main under nest_asyncio so InquirerPy prompts can start their own loop."""
    nest_asyncio.apply()
    return asyncio.run(main(argv))


def run() -> None:
    """Console script entry point."""
    try:
        run_main_sync()
    except KeyboardInterrupt:
        console.print("\n[bold yellow]Operation cancelled by user.[/bold yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}")
        if "--verbose" in sys.argv:
            import traceback
            console.print(traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    run()
