"""Template bundles rendered with Jinja2."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATE_DIR = Path(__file__).parent / "templates"
MANIFEST = Path(__file__).parent / "bundles.yml"


@dataclass
class BundleFile:
    """One file of a bundle: destination path and source template."""
    path: str
    template: str


@dataclass
class Bundle:
    """Named group of files scaffolded together (e.g. 'next-lint')."""
    name: str
    description: str = ""
    directories: List[str] = field(default_factory=list)
    files: List[BundleFile] = field(default_factory=list)


@dataclass
class RenderedFile:
    path: str
    content: str


class TemplateEngine:
    """Loads bundle definitions and renders their templates."""

    def __init__(self, template_dir: Optional[Path] = None, manifest: Optional[Path] = None):
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
        self.manifest = Path(manifest) if manifest else MANIFEST
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._bundles: Optional[Dict[str, Bundle]] = None

    def _load_manifest(self) -> Dict[str, Bundle]:
        if self._bundles is not None:
            return self._bundles

        if not self.manifest.exists():
            raise FileNotFoundError(f"Bundle manifest not found: {self.manifest}")

        with open(self.manifest) as f:
            data = yaml.safe_load(f) or {}

        bundles = {}
        for name, definition in data.items():
            definition = definition or {}
            bundles[name] = Bundle(
                name=name,
                description=definition.get('description', ''),
                directories=list(definition.get('directories', [])),
                files=[BundleFile(path=entry['path'], template=entry['template']) for entry in definition.get('files', [])],
            )
        self._bundles = bundles
        return bundles

    def list_bundles(self) -> List[Bundle]:
        return sorted(self._load_manifest().values(), key=lambda b: b.name)

    def load_bundle(self, name: str) -> Bundle:
        """Return a bundle by name.

        Raises:
            FileNotFoundError: Unknown bundle
        """
        bundles = self._load_manifest()
        if name not in bundles:
            available = ', '.join(sorted(bundles))
            raise FileNotFoundError(f"Template bundle '{name}' not found. Available: {available}")
        return bundles[name]

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        return self.jinja_env.get_template(template_name).render(**context)

    def render_bundle(self, name: str, context: Dict[str, Any]) -> List[RenderedFile]:
        bundle = self.load_bundle(name)
        return [
            RenderedFile(path=item.path, content=self.render_template(item.template, context))
            for item in bundle.files
        ]

    def render_string(self, source: str, context: Dict[str, Any]) -> str:
        """Render an inline expression such as '{{ SUPABASE_URL }}'."""
        return self.jinja_env.from_string(source).render(**context)
