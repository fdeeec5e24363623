"""Mindify rich error messages: what went wrong and what to run next.

Usage:
    from mindify.cli.errors import err_item_not_found
    console.print(err_item_not_found(item_id))
    raise typer.Exit(1)
"""

from __future__ import annotations

from mindify.ai.llm_client import provider_of


def err_no_api_key(model: str) -> str:
    """Online mode requested but the provider key is missing.

    Example:
        No API key for 'anthropic'. Set:  export ANTHROPIC_API_KEY=sk-...
    """
    provider = provider_of(model)
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider, f"{provider.upper()}_API_KEY")
    return (
        f"[yellow]Offline mode:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-...  to enable AI categorization."
    )


def err_empty_capture() -> str:
    return (
        "[red]Error:[/] No speech detected.\n"
        '  Pass the thought as text:  mindify capture "call mom at 3pm"'
    )


def err_item_not_found(item_id: str) -> str:
    return (
        f"[red]Error:[/] No item with id '{item_id}'.\n"
        "  Run:  mindify list  to see item ids."
    )


def err_project_not_found(project_id: str) -> str:
    return (
        f"[red]Error:[/] No project with id '{project_id}'.\n"
        "  Run:  mindify projects list"
    )


def err_storage_full(db_path: str) -> str:
    """Quota reached and nothing archived could be evicted."""
    return (
        f"[red]Error:[/] Storage is full: '{db_path}'.\n"
        "  Archive or delete old items, or raise storage.max_db_pages in mindify.yaml."
    )


def err_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Fix mindify.yaml or ~/.mindify/config.yaml and try again."
    )


def err_no_reminder(item_id: str) -> str:
    return (
        f"[red]Error:[/] Item '{item_id}' has no reminder set.\n"
        f"  Run:  mindify remind {item_id}  to set one."
    )


def err_unparsed_time(text: str) -> str:
    return (
        f"[red]Error:[/] Could not understand the time '{text}'.\n"
        '  Try e.g.  --at "tomorrow 9am"  or  --at "in 2 hours"'
    )
