"""
Shared fixtures: a small two-project site on disk

    site/
      site.yml
      guide/        project.yml, index.md, install.md, usage.md, refs.bib
      legacy/       main.tex, notes.tex (discovered, no project.yml)
"""

from pathlib import Path

import pytest

SITE_YML = """\
title: Handbook
projects:
  - slug: guide
    path: guide
  - slug: legacy
    path: legacy
"""

PROJECT_YML = """\
title: User guide
index: index.md
language: python
bibliography: [refs.bib]
pages:
  - file: install.md
  - title: Background
  - file: usage.md
    level: 2
"""

INDEX_MD = """\
---
title: Welcome
---
# Welcome

Typesetting follows {cite}`knuth84`.
"""

INSTALL_MD = """\
# Installing

```{code-block} bash
:caption: Install the package
:label: install-cmd
pip install docweave
```
"""

USAGE_MD = """\
# Usage

```{code-cell}
:tags: remove-input
print("hello")
```
"""

REFS_BIB = """\
@book{knuth84,
  author = {Donald E. Knuth},
  title = {The {TeX}book},
  year = 1984,
}
"""

MAIN_TEX = r"""\documentclass{article}
\title{Legacy notes}
\begin{document}
\section{Caf\'{e}}\label{sec:cafe}
Na\"{i}ve text \dag.
\end{document}
"""

NOTES_TEX = r"""Further reading \cite{knuth84}.
"""


def files_write(root: Path, files: dict) -> None:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Site root with a configured markdown project and a discovered TeX project"""
    root = tmp_path / "site"
    files_write(root, {
        "site.yml": SITE_YML,
        "guide/project.yml": PROJECT_YML,
        "guide/index.md": INDEX_MD,
        "guide/install.md": INSTALL_MD,
        "guide/usage.md": USAGE_MD,
        "guide/refs.bib": REFS_BIB,
        "legacy/main.tex": MAIN_TEX,
        "legacy/notes.tex": NOTES_TEX,
    })
    return root


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    return tmp_path / "_build"
