"""Starter templates for new projects.

Each template writes a few files and may run one toolchain initializer
inside the project folder of the owning environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .environment import Environment
from .errors import InvalidArgument, KetraError

PYTHON_MAIN = '#!/usr/bin/env python3\n\ndef main():\n    print("Hello, World!")\n\nif __name__ == "__main__":\n    main()\n'
GO_MAIN = 'package main\n\nimport "fmt"\n\nfunc main() {\n    fmt.Println("Hello, World!")\n}\n'
NODE_INDEX = "console.log('Hello, World!');\n"


@dataclass(frozen=True)
class ProjectTemplate:
    name: str
    files: dict[str, str] = field(default_factory=dict)
    init_command: tuple[str, ...] = ()


def _templates_for(project_name: str) -> dict[str, ProjectTemplate]:
    return {
        "empty": ProjectTemplate("empty", files={"README.md": f"# {project_name}\n\nA new project.\n"}),
        "python": ProjectTemplate("python", files={"main.py": PYTHON_MAIN, "requirements.txt": ""}),
        "node": ProjectTemplate("node", files={"index.js": NODE_INDEX}, init_command=("npm", "init", "-y")),
        "go": ProjectTemplate("go", files={"main.go": GO_MAIN}, init_command=("go", "mod", "init", project_name)),
        "rust": ProjectTemplate("rust", init_command=("cargo", "init")),
    }


TEMPLATE_NAMES = tuple(_templates_for("project"))


def resolve_template(project_name: str, template: str) -> ProjectTemplate:
    """Look up ``template`` (``empty`` when blank) for a project named ``project_name``."""
    templates = _templates_for(project_name)
    key = (template or "empty").strip().lower()
    if key not in templates:
        raise InvalidArgument(f"unknown template {template!r}; choose one of {', '.join(TEMPLATE_NAMES)}")
    return templates[key]


def init_project_template(environment: Environment, path: str, template: str | ProjectTemplate) -> None:
    """Populate ``path`` according to ``template``."""
    if isinstance(template, ProjectTemplate):
        chosen = template
    else:
        chosen = resolve_template(environment.leaf_name(path), template)

    if chosen.init_command:
        outcome = environment.run(path, chosen.init_command, environment.config.network_timeout_seconds)
        if not outcome.exit_succeeded:
            raise KetraError(
                f"Failed to initialize {chosen.name} project: {outcome.combined.strip() or outcome.returncode}"
            )

    for filename, content in chosen.files.items():
        environment.write_text(environment.join(path, filename), content)


__all__ = ["TEMPLATE_NAMES", "ProjectTemplate", "init_project_template", "resolve_template"]
