"""Interactive provider and model selection."""

from typing import Dict, List, Tuple

import click

from ..config import GlimpseConfig, LLMSettings
from ..config.glimpse_config import API_KEY_ENV_VARS
from ..llm.factory import PLANNED_PROVIDERS

PROVIDER_CHOICES: List[Tuple[str, str]] = [
    ("openai", "OpenAI (GPT-4o, GPT-3.5-turbo)"),
    ("zai", "Z.AI (GLM-4.6)"),
    ("claude", "Claude (Claude-3.5-Sonnet)"),
    ("ollama", "Ollama (local models)"),
    ("gemini", "Gemini (Coming Soon)"),
]

MODEL_CHOICES: Dict[str, List[str]] = {
    "openai": ["gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"],
    "zai": ["glm-4.6", "glm-4", "glm-3-turbo"],
    "claude": [
        "claude-3-5-sonnet-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
    ],
    "ollama": ["qwen2.5-coder:14b", "llama3.1:8b"],
}


def _resolve_choice(answer: str, options: List[str]) -> str:
    """Accept a 1-based number or a literal name."""
    answer = answer.strip()
    if answer.isdigit() and 1 <= int(answer) <= len(options):
        return options[int(answer) - 1]
    return answer


def prompt_provider() -> str:
    """
    Ask the user for a provider.

    Raises:
        click.BadParameter: On an unknown or unimplemented provider
    """
    click.echo("Available providers:")
    for index, (_, label) in enumerate(PROVIDER_CHOICES, start=1):
        click.echo(f"  {index}) {label}")

    names = [name for name, _ in PROVIDER_CHOICES]
    provider = _resolve_choice(
        click.prompt(f"Enter provider number (1-{len(names)})"), names
    ).lower()

    if provider in PLANNED_PROVIDERS:
        raise click.BadParameter(f"{provider} provider is not yet implemented")
    if provider not in MODEL_CHOICES:
        raise click.BadParameter(f"invalid selection: {provider}")
    return provider


def prompt_model(provider: str) -> str:
    """Ask for a model; free text is accepted as a custom model name."""
    models = MODEL_CHOICES[provider]
    click.echo("Available models:")
    for index, model in enumerate(models, start=1):
        suffix = " (recommended)" if index == 1 else ""
        click.echo(f"  {index}) {model}{suffix}")

    answer = click.prompt(
        f"Enter model number (1-{len(models)}) or custom model name",
        default="1",
    )
    return _resolve_choice(answer, models)


def api_key_help(provider: str) -> str:
    env_var = API_KEY_ENV_VARS.get(provider)
    if env_var is None:
        return f"{provider} does not need an API key."
    return f"Set your API key before starting: export {env_var}=..."


def run_setup(config: GlimpseConfig) -> GlimpseConfig:
    """Prompt for provider and model and return the updated config."""
    provider = prompt_provider()
    model = prompt_model(provider)
    click.echo(api_key_help(provider))

    llm = LLMSettings(**{**config.llm.model_dump(), "provider": provider, "model": model})
    return config.model_copy(update={"llm": llm})
