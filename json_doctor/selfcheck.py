"""
Colourised smoke run over representative broken inputs.

    python -m json_doctor

Each case is repaired and the result re-parsed strictly. Cases listed under
REJECT must fail with UnrepairableError.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .errors import UnrepairableError
from .orchestrator import repair
from .strict import strict_loads

RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"

CASES: List[Tuple[str, str, str]] = [
    ("QUOTE-01", "Single quotes", "{'a': 'b', 'c': 1}"),
    ("QUOTE-02", "Unescaped inner quotes", '{"x": "text with "quotes"" }'),
    ("QUOTE-03", "Unquoted keys", "{name: \"John\", age: 30}"),
    ("QUOTE-04", "Inner quotes around punctuation", '{"x": "He said "hi, there""}'),
    ("COMMA-01", "Trailing commas", '{"a":[1,2,3,],"b":{"x":1,},}'),
    ("COMMA-02", "Missing commas", '{"a":1 "b":2 "c":3}'),
    ("COMMA-03", "Empty slots", "[1,,2]"),
    ("COMMA-04", "Adjacent objects in array", '[{"a":1} {"b":2}]'),
    ("CMNT-01", "Line and block comments", '{//x\n"a":1,/*y*/"b":2,}'),
    ("CMNT-02", "Comment-only input", "// nothing here"),
    ("LIT-01", "Python literals", "{a: True, b: False, c: None}"),
    ("LIT-02", "undefined", "{a: undefined}"),
    ("LIT-03", "Hex numbers", "{x: 0x1A}"),
    ("ESC-01", "Hex escape", '{"x": "\\x01"}'),
    ("ESC-02", "Raw newline in string", '{"x": "a\nb"}'),
    ("BRKT-01", "Truncated object", '{"a": {"b": [1, 2, 3'),
    ("BRKT-02", "Dangling key", "{a:{b:[1,2,3,{c:"),
    ("BRKT-03", "Mismatched closer", "{a:[1,2,3}"),
    ("BRKT-04", "Doubled braces", '{{"a":1}}'),
    ("BRKT-05", "Truncated string", '{"a": "hel'),
    ("BRKT-06", "Doubled braces around objects", '{{"a":1}, {"b":2}}'),
    ("ROOT-01", "Concatenated objects", "{a:1}{b:2}"),
    ("ROOT-02", "Line-delimited objects", '{"a":1},\n{"b":2}'),
    ("ROOT-03", "Dangling colon", '{foo:1}:"'),
    ("ROOT-04", "Byte-order mark", "\ufeff{}"),
    ("NEST-01", "Stringified JSON", '{"x": "{\\"y\\": [1, 2,]}",}'),
    ("SCALAR-01", "Bare word", "hello"),
]

REJECT: List[Tuple[str, str, str]] = [
    ("PROSE-01", "Plain prose", "this is not json at all"),
]


def run() -> int:
    passed = 0
    failed = 0
    categories: Dict[str, Dict[str, int]] = {}
    fail_list: List[str] = []

    print(f"\n{BOLD}{'=' * 74}{RESET}")
    print(f"{BOLD}  json-doctor self-check -- {len(CASES) + len(REJECT)} cases{RESET}")
    print(f"{BOLD}{'=' * 74}{RESET}\n")

    for id_, desc, broken in CASES + REJECT:
        cat = id_.split("-")[0]
        categories.setdefault(cat, {"p": 0, "f": 0})
        expect_reject = (id_, desc, broken) in REJECT

        print(f"{BOLD}{CYAN}{id_}{RESET}: {desc}")
        short = (broken[:88] + "...") if len(broken) > 88 else broken
        print(f"  {DIM}Input: {short!r}{RESET}")

        outcome = repair(broken)
        ok = False
        if expect_reject:
            ok = not outcome.succeeded and isinstance(outcome.error, UnrepairableError)
            detail = str(outcome.error).splitlines()[0] if outcome.error else "repaired"
        elif outcome.succeeded and outcome.repaired_text is not None:
            strict_loads(outcome.repaired_text)
            ok = True
            stages = ", ".join(f.stage for f in outcome.fixes) or "strict"
            detail = f"{stages}\n  -> {outcome.repaired_text[:95]}"
        else:
            detail = str(outcome.error)[:160]

        if ok:
            print(f"  {GREEN}+ PASS{RESET}  {DIM}{detail}{RESET}")
            passed += 1
            categories[cat]["p"] += 1
        else:
            print(f"  {RED}- FAIL -- {detail}{RESET}")
            failed += 1
            categories[cat]["f"] += 1
            fail_list.append(f"{id_}: {desc}")
        print()

    print(f"{BOLD}{'=' * 74}{RESET}")
    print(f"{BOLD}  RESULTS BY CATEGORY{RESET}")
    print(f"{'-' * 74}{RESET}")
    for cat, r in categories.items():
        total = r["p"] + r["f"]
        bar = chr(9608) * r["p"] + chr(9617) * r["f"]
        pct = int(100 * r["p"] / total) if total else 100
        color = GREEN if r["f"] == 0 else (YELLOW if r["p"] > 0 else RED)
        print(f"  {color}{cat:<8}  {bar:<14}  {r['p']}/{total}  ({pct}%){RESET}")

    pct_total = int(100 * passed / (passed + failed)) if (passed + failed) else 100
    c = GREEN if failed == 0 else (YELLOW if pct_total >= 80 else RED)
    print(f"\n{'-' * 74}{RESET}")
    print(
        f"  {BOLD}TOTAL:{RESET}  {GREEN}{passed} passed{RESET} "
        f" {RED}{failed} failed{RESET}  / {passed + failed}   {c}({pct_total}%){RESET}"
    )
    print(f"{BOLD}{'=' * 74}{RESET}\n")

    if fail_list:
        print(f"{BOLD}{RED}Failed tests:{RESET}")
        for d in fail_list:
            print(f"  {RED}- {d}{RESET}")
    return 1 if failed else 0
