"""Trellis — compile a nested route tree into a flat pages directory.

Route trees group routes in ``(folder)`` segments, give each group a
``layout`` file, and let layouts and routes export data loaders.  The host
router only understands one file per route, so trellis generates that file:
it imports the route and its layout chain, nests the views, and merges the
data loaders.

Quick start::

    import trellis

    trellis.generate("my-app/")       # One pass: routes/ -> pages/
    trellis.watch("my-app/")          # Keep pages/ current while editing

Layout of a route tree::

    routes/
        _app.tsx                      copied verbatim
        page.tsx                      -> pages/index.tsx
        (marketing)/layout.tsx        wraps every route below it
        (marketing)/about/page.tsx    -> pages/about.tsx
        api/users.ts                  -> pages/api/users.ts (re-exported)

"""

__version__ = "0.1.0"
__all__ = [
    "TrellisConfig",
    "WrapperFunction",
    "__version__",
    "generate",
    "watch",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import trellis`` fast; the parser grammars and watcher load
    only when used.
    """
    if name == "TrellisConfig":
        from trellis.config import TrellisConfig

        return TrellisConfig

    if name == "WrapperFunction":
        from trellis.config import WrapperFunction

        return WrapperFunction

    if name == "generate":
        from trellis.app import generate

        return generate

    if name == "watch":
        from trellis.app import watch

        return watch

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
