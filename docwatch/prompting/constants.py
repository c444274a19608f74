"""Section table and prompt templates for context assembly."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ..collector import CODE_EXTENSIONS, CONFIG_FILENAMES

Predicate = Callable[[str], bool]

PROJECT_SECTION = "project"
INCREMENTAL_SECTION = "incremental"


def ends_with(*suffixes: str) -> Predicate:
    def predicate(path: str) -> bool:
        return path.endswith(suffixes)

    return predicate


def contains(*needles: str) -> Predicate:
    def predicate(path: str) -> bool:
        return any(needle in path for needle in needles)

    return predicate


def _main_source(path: str) -> bool:
    return "/src/" in path and "test" not in path


def _code_file(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in CODE_EXTENSIONS


def _config_file(path: str) -> bool:
    return path.rsplit("/", 1)[-1] in CONFIG_FILENAMES


@dataclass(frozen=True)
class SectionSpec:
    """Static description of one documentation section."""

    key: str
    title: str
    filename: str
    max_files: Optional[int]
    task: str
    outline: Tuple[str, ...]
    predicates: Tuple[Predicate, ...] = ()

    def sort_key(self, path: str, tokens: int) -> Tuple[int, ...]:
        """Earlier predicates dominate later ones; smaller files break the remaining ties."""
        anchored = path if path.startswith("/") else f"/{path}"
        flags = tuple(0 if predicate(anchored) else 1 for predicate in self.predicates)
        return flags + (tokens,)


OUTPUT_RULES: Tuple[str, ...] = (
    'DO NOT open with phrases like "Sure!", "Here is" or "Below is"',
    "DO NOT wrap the answer in ```markdown fences",
    "DO NOT apologise or explain the documentation itself",
    "Start directly with the document content, such as a title",
    "Use plain Markdown formatting without additional wrappers",
)

SECTION_SPECS: Dict[str, SectionSpec] = {
    "overview": SectionSpec(
        key="overview",
        title="Project Overview",
        filename="00-Overview.md",
        max_files=5,
        task="Explain the purpose of this project, its main features and its overall architecture.",
        outline=(
            "Open with the project title and a short introduction",
            "State the goals and the problems the project solves",
            "Describe key features and capabilities",
            "Give a high-level view of the architecture and technology stack",
        ),
        predicates=(ends_with("README.md"), ends_with("package.json", "pyproject.toml")),
    ),
    "architecture": SectionSpec(
        key="architecture",
        title="System Architecture",
        filename="01-Architecture.md",
        max_files=10,
        task="Document the architecture: major components, data flow and design patterns.",
        outline=(
            "Describe the architecture as a text diagram",
            "Detail each major component and its responsibility",
            "Explain how data flows through the system",
            "Call out design patterns, scaling and performance decisions",
        ),
        predicates=(_main_source,),
    ),
    "setup": SectionSpec(
        key="setup",
        title="Setup & Installation",
        filename="02-Setup.md",
        max_files=6,
        task="Write a setup and installation guide.",
        outline=(
            "List prerequisites and dependencies",
            "Give step-by-step installation instructions",
            "Explain configuration and how to run the project locally",
            "Add tips for common setup problems",
        ),
        predicates=(
            ends_with("package.json", "pyproject.toml"),
            ends_with(".env.example"),
            contains("config"),
        ),
    ),
    "apis": SectionSpec(
        key="apis",
        title="API Reference",
        filename="03-APIs.md",
        max_files=8,
        task="Document the APIs of this project with their endpoints, parameters and responses.",
        outline=(
            "Group endpoints logically",
            "For each endpoint give method, URL, request format, response format and errors",
            "Describe authentication requirements where they apply",
        ),
        predicates=(contains("api", "route"),),
    ),
    "components": SectionSpec(
        key="components",
        title="Components",
        filename="04-Components.md",
        max_files=10,
        task="Document the main components, their purpose and how they interact.",
        outline=(
            "List the major components with a short description",
            "For each: responsibility, key functions, collaborators, usage examples",
        ),
        predicates=(contains("component", "ui"),),
    ),
    "configuration": SectionSpec(
        key="configuration",
        title="Configuration",
        filename="05-Configuration.md",
        max_files=5,
        task="Document every configuration option and setting.",
        outline=(
            "List configuration files and their purpose",
            "Document environment variables with defaults",
            "Show examples for different environments",
            "Explain how to handle sensitive values",
        ),
        predicates=(lambda path: "config" in path or path.endswith(".env.example"),),
    ),
    "development": SectionSpec(
        key="development",
        title="Development Guide",
        filename="06-Development.md",
        max_files=6,
        task="Write a development guide covering workflow, code standards and contribution rules.",
        outline=(
            "Outline the development workflow",
            "Document coding conventions",
            "Explain the testing approach and CI process",
            "Give contribution guidelines",
        ),
        predicates=(ends_with(".gitignore"), contains("test", "dev")),
    ),
    "troubleshooting": SectionSpec(
        key="troubleshooting",
        title="Troubleshooting",
        filename="07-Troubleshooting.md",
        max_files=5,
        task="Write a troubleshooting guide for common issues.",
        outline=(
            "Group common issues by category",
            "For each: symptoms, likely causes, step-by-step fixes",
            "Include debugging techniques",
        ),
        predicates=(contains("error", "log"),),
    ),
}

DEFAULT_SECTION_SPEC = SectionSpec(
    key="default",
    title="Documentation",
    filename="documentation.md",
    max_files=8,
    task="Write comprehensive documentation for this part of the project.",
    outline=(
        "Use clear headings and subheadings",
        "Include code examples where they help",
        "Be concise but thorough",
        "Write for developers who maintain this code",
    ),
)

PROJECT_SPEC = SectionSpec(
    key=PROJECT_SECTION,
    title="Project Documentation",
    filename="project-doc.md",
    max_files=None,
    task=(
        "Create detailed, well-structured documentation that covers the project's purpose, "
        "architecture, components and usage."
    ),
    outline=(
        "Start with the project title and a brief introduction",
        "Include a table of contents",
        "Organise information into logical sections with proper headings",
        "Include code examples where appropriate",
        "End with setup and usage instructions",
    ),
    predicates=(
        ends_with("README.md"),
        ends_with("package.json", "pyproject.toml"),
        ends_with("tsconfig.json"),
        _config_file,
        _code_file,
    ),
)


def section_spec(key: str) -> SectionSpec:
    """Look up a section; unknown keys get the generic section under their own name."""
    spec = SECTION_SPECS.get(key)
    if spec is not None:
        return spec
    if key == PROJECT_SECTION:
        return PROJECT_SPEC
    return SectionSpec(
        key=key,
        title=key.replace("_", " ").title(),
        filename=f"{key}.md",
        max_files=DEFAULT_SECTION_SPEC.max_files,
        task=DEFAULT_SECTION_SPEC.task,
        outline=DEFAULT_SECTION_SPEC.outline,
    )


HEADER_TEMPLATE = """\
# PROJECT DOCUMENTATION - {{ title | upper }}

You are an expert programmer and technical documentation specialist. {{ task }}

## IMPORTANT OUTPUT INSTRUCTIONS
{% for rule in rules -%}
- {{ rule }}
{% endfor %}
## OUTPUT FORMAT
{% for item in outline -%}
- {{ item }}
{% endfor %}
## PROJECT INFORMATION
Project: {{ project_name }}
"""

STATS_TEMPLATE = """
## PROJECT STATISTICS
{{ stats }}"""

FILE_OPEN_TEMPLATE = "\n### FILE: {path}\n```\n"
FILE_CLOSE = "\n```\n"

FOOTER_TEMPLATE = """
## FINAL NOTES
1. Focus on clarity, accuracy and completeness for the {{ title }} document
2. Use proper Markdown formatting throughout
3. Keep the information relevant to developers working on this project
4. Output ONLY the Markdown content to be saved to the file
"""

PROJECT_FOOTER_TEMPLATE = """
## FINAL NOTES
1. Focus on clarity, organisation and technical accuracy
2. Target audience: developers who need to understand or contribute to the project
3. Structure the documentation to be comprehensive and easy to navigate
4. Output ONLY the Markdown content to be saved to the file
"""

EXCLUDED_NOTE_TEMPLATE = """
### Excluded Files
{{ count }} files were not included due to token limitations.
"""

INCREMENTAL_HEADER_TEMPLATE = """\
# PROJECT DOCUMENTATION UPDATE

You are an expert programmer and technical documentation specialist. Update the existing documentation for this project.

## TASK
Review the existing documentation and revise it with any new information. Keep the original structure and format while correcting or extending content as needed.

## OUTPUT FORMAT
- Preserve the document structure, headings and organisation
- Update technical details, code examples and explanations to match the current code
- Keep Markdown formatting consistent
{% for rule in rules -%}
- {{ rule }}
{% endfor %}
## PROJECT INFORMATION
Project: {{ project_name }}

## EXISTING DOCUMENTATION (EXCERPT)

{{ excerpt }}
"""

INCREMENTAL_FILES_HEADING = "\n## RELEVANT FILES FOR CONTEXT\n"

INCREMENTAL_FOOTER_TEMPLATE = """
## UPDATE GUIDELINES
1. Keep what works in the existing documentation
2. Update information that is outdated or incorrect
3. Add missing details about new features or changes
4. Keep the document flowing logically and technically accurate
5. Output the complete updated documentation
"""

INCREMENTAL_EXCERPT_CHARS = 1500
INCREMENTAL_FILE_CHARS = 3000
INCREMENTAL_FILE_LIMIT = 5


__all__ = [
    "DEFAULT_SECTION_SPEC",
    "INCREMENTAL_EXCERPT_CHARS",
    "INCREMENTAL_FILE_CHARS",
    "INCREMENTAL_FILE_LIMIT",
    "INCREMENTAL_SECTION",
    "OUTPUT_RULES",
    "PROJECT_SECTION",
    "PROJECT_SPEC",
    "SECTION_SPECS",
    "SectionSpec",
    "section_spec",
]
