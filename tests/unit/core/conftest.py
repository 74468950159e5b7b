"""Shared fixtures for core unit tests"""

import pytest


SAMPLE_POST = """\
---
layout: post
title: Parallel processing in Python
description: Pools, executors and the event loop
date: 2023-04-01 10:00:00 +0200
categories: python concurrency
---

# Process pools

```python
from multiprocessing import Pool

with Pool(4) as pool:
    print(pool.map(abs, [-1, -2, 3]))
```

Loading JSON:

```json
{"name": "config", "retries": 3}
```
"""

BROKEN_POST = """\
---
title: Broken
date: 2023-05-02
---

```python
def oops(:
    pass
```

```
no language here
```
"""


@pytest.fixture(name="post_file")
def post_file_fixture(tmp_path):
    p = tmp_path / "2023-04-01-parallel-processing.md"
    p.write_text(SAMPLE_POST, encoding="utf-8")
    return p


@pytest.fixture(name="broken_file")
def broken_file_fixture(tmp_path):
    p = tmp_path / "broken.md"
    p.write_text(BROKEN_POST, encoding="utf-8")
    return p
