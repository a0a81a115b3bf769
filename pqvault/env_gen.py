"""Build .env file content for registered projects."""

from __future__ import annotations

from .models import VaultData


class ProjectNotRegisteredError(LookupError):
    """Raised when a project name is not registered in the vault."""

    def __init__(self, project_name: str) -> None:
        self.project_name = project_name
        super().__init__(f"Project '{project_name}' not registered.")

    def __str__(self) -> str:
        return self.args[0]


def get_project_secrets(vault: VaultData, project_name: str) -> list[tuple[str, str]]:
    """All (KEY_NAME, value) pairs a project uses.

    Keys listed by the project come first in their listed order, then any
    secret naming the project in its own project list, sorted by name.
    """
    seen: set[str] = set()
    result: list[tuple[str, str]] = []

    project = vault.projects.get(project_name)
    if project is not None:
        for key_name in project.keys:
            secret = vault.secrets.get(key_name)
            if secret is not None and key_name not in seen:
                seen.add(key_name)
                result.append((key_name, secret.value))

    extra = sorted(
        (name, secret.value)
        for name, secret in vault.secrets.items()
        if project_name in secret.projects and name not in seen
    )
    result.extend(extra)
    return result


def generate_env(vault: VaultData, project_name: str) -> str:
    """Render the .env file text for a registered project."""
    project = vault.projects.get(project_name)
    if project is None:
        raise ProjectNotRegisteredError(project_name)

    lines = [f"# Generated by pqvault for project: {project_name}", ""]

    for key_name in sorted(project.keys):
        secret = vault.secrets.get(key_name)
        if secret is not None:
            lines.append(f"{key_name}={secret.value}")
        elif key_name in project.env_extras:
            lines.append(f"{key_name}={project.env_extras[key_name]}")

    extras = sorted(
        (name, value)
        for name, value in project.env_extras.items()
        if name not in project.keys
    )
    lines.extend(f"{name}={value}" for name, value in extras)

    lines.append("")
    return "\n".join(lines)