"""Shared test fixtures for trellis."""

from __future__ import annotations

from pathlib import Path

import pytest

from trellis.config import TrellisConfig


def write_file(root: Path, relative: str, content: str) -> Path:
    """Write *content* to ``root/relative`` and return the path."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


PAGE = "export default function Page() {\n\treturn <main />\n}\n"

PAGE_WITH_LOADER = (
    "export default function Page(props) {\n\treturn <main />\n}\n\n"
    "export async function getServerSideProps(context) {\n"
    "\treturn { props: { x: 1 } }\n}\n"
)

LAYOUT = "export default function Layout({ children }) {\n\treturn <div>{children}</div>\n}\n"

LAYOUT_WITH_LOADER = (
    "export default function Layout({ children }) {\n\treturn <div>{children}</div>\n}\n\n"
    "export const getServerSideProps = async () => ({ redirect: { destination: '/login' } })\n"
)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with an empty routes/ directory."""
    (tmp_path / "routes").mkdir()
    return tmp_path


@pytest.fixture
def config(project: Path) -> TrellisConfig:
    """TrellisConfig rooted at the project fixture."""
    return TrellisConfig(root=project)


@pytest.fixture
def route_tree(project: Path) -> Path:
    """A representative route tree; returns the routes/ directory.

    routes/
        _app.tsx
        page.tsx
        (marketing)/layout.tsx
        (marketing)/about/page.tsx
        (app)/layout.tsx                (exports getServerSideProps)
        (app)/(dashboard)/layout.tsx
        (app)/(dashboard)/settings/page.tsx   (exports getServerSideProps)
        blog/[slug]/page.tsx
        blog/[slug]/Comments.tsx        (co-located, ignored)
        api/health.ts                   (named export only)
    """
    routes = project / "routes"
    write_file(routes, "_app.tsx", "import '../styles.css'\nexport default function App() {}\n")
    write_file(routes, "page.tsx", PAGE)
    write_file(routes, "(marketing)/layout.tsx", LAYOUT)
    write_file(routes, "(marketing)/about/page.tsx", PAGE)
    write_file(routes, "(app)/layout.tsx", LAYOUT_WITH_LOADER)
    write_file(routes, "(app)/(dashboard)/layout.tsx", LAYOUT)
    write_file(routes, "(app)/(dashboard)/settings/page.tsx", PAGE_WITH_LOADER)
    write_file(routes, "blog/[slug]/page.tsx", PAGE)
    write_file(routes, "blog/[slug]/Comments.tsx", "export function Comments() {}\n")
    write_file(routes, "api/health.ts", "export async function handler(req, res) {\n\tres.end()\n}\n")
    return routes
