from pathlib import Path

import pytest

from pattern_catalog.document_parser import parse_document


CONFIG_VARS = (
    "PATTERN_CATALOG_EXTENSIONS",
    "PATTERN_CATALOG_WORKERS",
    "PATTERN_CATALOG_USE_PROCESSES",
    "PATTERN_CATALOG_FAIL_ON",
    "PATTERN_CATALOG_LOG_LEVEL",
)


DUPLICATE_STATE = """---
title: Duplicate State
---
import { Callout } from 'nextra/components'

# 3. Duplicate State

Keeping the same value in two places. See [React docs](https://react.dev/learn/choosing-the-state-structure) and [local](/docs/intro).

## Examples

### 1. Derived value

🛑 Avoid: storing a derived value in state.

```jsx {2} /useState/
function Cart({ items }) {
  const [total, setTotal] = useState(0);
  return <p>{total}</p>;
}
```

✅ Good: compute it during render.

```jsx
function Cart({ items }) {
  const total = sum(items);
  return <p>{total}</p>;
}
```

Diff view (+1/-1):

```diff
 function Cart({ items }) {
-  const [total, setTotal] = useState(0);
+  const total = sum(items);
   return <p>{total}</p>;
 }
```

### 2. Copied props

🛑 Avoid: copying a prop into state.

```jsx
const [name, setName] = useState(props.name);
```

✅ Good: read the prop.

```jsx
const name = props.name;
```

## Notes

Incorrectly implemented 161 out of 213 times.
"""


UNSTABLE_KEYS = """# 7. Unstable Keys

Using array indexes as keys.

## Examples

### 1. Index keys

❌ Bad: the index changes when items move.

```jsx
items.map((item, i) => <Row key={i} />)
```

✅ Good: use a stable id.

```jsx
items.map((item) => <Row key={item.id} />)
```

```diff +2/-1
-items.map((item, i) => <Row key={i} />)
+items.map((item) => <Row key={item.id} />)
+const unrelated = true;
```

## Notes

Seen 12 times.
"""


MALFORMED = """Some notes without a numbered title.

## Examples
"""


NO_EXAMPLES = """# 9. Nothing Here

Only an introduction.
"""


def highlight_out_of_range(lines: int = 40, highlighted: int = 99) -> str:
    body = "\n".join(f"line{n}()" for n in range(1, lines + 1))
    return (
        "# 5. Long Functions\n\n"
        "## Examples\n\n"
        "### 1. Everything in one place\n\n"
        "🛑 Avoid:\n\n"
        f"```js {{{highlighted}}}\n{body}\n```\n\n"
        "✅ Good:\n\n"
        "```js\nsplit()\n```\n"
    )


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test without user configuration or a stray .env file."""
    for name in CONFIG_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def duplicate_state():
    return parse_document(DUPLICATE_STATE, "duplicate-state.mdx")


@pytest.fixture
def unstable_keys():
    return parse_document(UNSTABLE_KEYS, "unstable-keys.md")


@pytest.fixture
def docs_dir(tmp_path):
    """Source directory with two valid documents and one broken one."""
    root = tmp_path / "docs"
    (root / "react").mkdir(parents=True)
    (root / "react" / "duplicate-state.mdx").write_text(DUPLICATE_STATE, encoding="utf-8")
    (root / "unstable-keys.md").write_text(UNSTABLE_KEYS, encoding="utf-8")
    (root / "broken.md").write_text(MALFORMED, encoding="utf-8")
    (root / "README.txt").write_text("not a pattern", encoding="utf-8")
    return root


def write_doc(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
