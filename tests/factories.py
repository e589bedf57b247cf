"""
Test factories for reactcompile.

Builds small React projects in memory (or on disk) so tests exercise the
real resolver, caches and backends without a browser or a network.

Usage:
    factory = ProjectFactory()
    factory.add("/src/lib/extra.ts", "export const extra = 1;")
    provider = factory.provider()
    backend = factory.backend("transpile")
"""

import asyncio
from pathlib import Path
from typing import Dict, Optional

from reactcompile.backends import create_backend
from reactcompile.core.sources import MemorySourceProvider


# =============================================================================
# Sample project (the playground's three editor files)
# =============================================================================

ENTRY_TSX = '''\
import React, { useState } from "react";
import { createRoot } from "react-dom/client";
import { Button } from "@/components/ui/button";
import { formatDate } from "@/lib/utils";

interface AppProps {
  title: string;
}

function App({ title }: AppProps) {
  const [count, setCount] = useState<number>(0);
  const theme = (window as any).__THEME__ || {};

  return (
    <div style={{ padding: "20px", color: theme.text }}>
      {/* Header */}
      <h1>{title}</h1>
      <p>Count: {count}</p>
      <p>Today is {formatDate(new Date())}</p>
      <Button onClick={() => setCount(count + 1)}>Increment</Button>
    </div>
  );
}

createRoot(document.getElementById("root")!).render(<App title="Playground" />);
'''

BUTTON_TSX = '''\
import React from "react";

interface ButtonProps {
  children?: React.ReactNode;
  onClick?: () => void;
  [key: string]: unknown;
}

export function Button({ children, onClick, ...props }: ButtonProps) {
  return (
    <button
      onClick={onClick}
      style={{ padding: "8px 16px", borderRadius: "6px", cursor: "pointer" }}
      {...props}
    >
      {children}
    </button>
  );
}
'''

UTILS_JS = '''\
export function formatDate(date) {
  return date.toLocaleDateString("en-US", { year: "numeric", month: "long", day: "numeric" });
}

export const VERSION = "1.0.0";
'''

SAMPLE_FILES: Dict[str, str] = {
    "/src/entry.tsx": ENTRY_TSX,
    "/src/components/ui/button.tsx": BUTTON_TSX,
    "/src/lib/utils.js": UTILS_JS,
}


def run(coro):
    """Drive one coroutine to completion."""
    return asyncio.run(coro)


class ProjectFactory:
    """
    Mutable file set plus helpers to build providers and backends over it.

    Starts from the sample project unless `files` is given.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(SAMPLE_FILES if files is None else files)

    def add(self, path: str, contents: str) -> "ProjectFactory":
        self.files[path] = contents
        return self

    def remove(self, path: str) -> "ProjectFactory":
        self.files.pop(path, None)
        return self

    def provider(self) -> MemorySourceProvider:
        return MemorySourceProvider(self.files)

    def backend(self, name: str, provider: Optional[MemorySourceProvider] = None, **kwargs):
        return create_backend(name, provider or self.provider(), **kwargs)

    def write_to(self, root: Path) -> Path:
        """Lay the files out under root (`/src/x` -> `root/src/x`)."""
        for path, contents in self.files.items():
            target = root / path.lstrip("/")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(contents, encoding="utf-8")
        return root

    # -------------------------------------------------------------------------
    # Variants
    # -------------------------------------------------------------------------

    @classmethod
    def minimal(cls) -> "ProjectFactory":
        """Entry importing one alias module."""
        return cls({
            "/src/entry.tsx": 'import { greet } from "@/lib/greet";\nconsole.log(greet("world"));\n',
            "/src/lib/greet.ts": "export function greet(name: string): string {\n  return `hi ${name}`;\n}\n",
        })

    @classmethod
    def cycle(cls) -> "ProjectFactory":
        """a -> b -> a through alias imports."""
        return cls({
            "/src/entry.ts": 'import { a } from "@/a";\nconsole.log(a());\n',
            "/src/a.ts": 'import { b } from "@/b";\nexport function a() { return "a" + b(); }\n',
            "/src/b.ts": 'import { a } from "@/a";\nexport function b() { return typeof a; }\n',
        })

    @classmethod
    def with_missing_dependency(cls) -> "ProjectFactory":
        return cls({
            "/src/entry.tsx": 'import { Missing } from "@/components/missing";\nconsole.log(Missing);\n',
        })

    @classmethod
    def with_relative_import(cls) -> "ProjectFactory":
        return cls({
            "/src/entry.tsx": 'import { helper } from "./helper";\nconsole.log(helper);\n',
            "/src/helper.ts": "export const helper = 42;\n",
        })
