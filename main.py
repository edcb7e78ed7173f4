#!/usr/bin/env python3
"""
Attention Playground - Main Entry Point

This script runs one multi-head self-attention computation over a piece of
text and prints the resulting attention weights.

The goal is educational: see how attention weights form, head by head,
with every number reproducible from the text and the seed alone.

What this demonstrates:
1. Character- and word-level tokenization
2. Deterministic, hash-seeded token embeddings
3. Query / key / value projections drawn from one seeded generator
4. Splitting the model dimension into heads
5. Scaled dot-product scores with an optional causal mask
6. Row-wise softmax and averaging over heads

Usage:
    python main.py
    python main.py --text "the cat sat on the mat" --mode word --heads 4
    python main.py --no-causal --seed 7 --per-head
    python main.py --self-test

Rows of each matrix are query positions, columns are key positions.
Every row sums to 1.
"""

import argparse
import sys

import numpy as np

from config import CONFIG, TOKEN_MODES, validate_config
from core.pipeline import AttentionConfig, compute_attention
from utils.selftest import run_self_tests


def print_separator(title=""):
    """Print a visual separator."""
    print("\n" + "=" * 60)
    if title:
        print(f"  {title}")
        print("=" * 60)


def format_weights(tokens, weights, precision=2):
    """
    Render a weight matrix as a labelled text table.

    Row labels are query tokens, column labels are key tokens.
    Whitespace tokens are shown as repr() so they stay visible.
    """
    labels = [repr(tk) if not tk.strip() else tk for tk in tokens]
    width = max(precision + 3, max(len(label) for label in labels))

    lines = [" " * width + " " + " ".join(label.rjust(width) for label in labels)]
    for label, row in zip(labels, weights):
        cells = " ".join(f"{v:{width}.{precision}f}" for v in row)
        lines.append(f"{label.rjust(width)} {cells}")
    return "\n".join(lines)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Deterministic multi-head attention playground")
    p.add_argument("--text", type=str, default=CONFIG["text"], help="input text")
    p.add_argument("--mode", choices=TOKEN_MODES, default=CONFIG["token_mode"],
                   help="tokenize by character or by word")
    p.add_argument("--d-model", type=int, default=CONFIG["d_model"],
                   help="model dimension (rounded down to a multiple of 4)")
    p.add_argument("--heads", type=int, default=CONFIG["n_heads"], help="number of heads")
    p.add_argument("--no-causal", action="store_true", help="let every position attend to the future")
    p.add_argument("--seed", type=int, default=CONFIG["seed"], help="global seed")
    p.add_argument("--per-head", action="store_true", help="also print every head's weights")
    p.add_argument("--self-test", action="store_true", help="run the built-in checks and exit")
    return p, p.parse_args(argv)


def run_self_test_panel():
    print_separator("SELF-TESTS")
    results = run_self_tests()
    for result in results:
        print(f"  [{'PASS' if result.passed else 'FAIL'}] {result.name}")

    failed = sum(not r.passed for r in results)
    print(f"\n  {len(results) - failed}/{len(results)} checks passed")
    return 1 if failed else 0


def main(argv=None):
    """Run one attention computation and print it."""
    parser, args = parse_args(argv)

    if args.self_test:
        return run_self_test_panel()

    try:
        config = validate_config({
            "text": args.text,
            "token_mode": args.mode,
            "d_model": args.d_model,
            "n_heads": args.heads,
            "causal": not args.no_causal,
            "seed": args.seed,
        })
    except ValueError as e:
        parser.error(str(e))

    attention_config = AttentionConfig.from_dict(config)

    print_separator("ATTENTION PLAYGROUND")
    print(f"\nText: {attention_config.text!r}")

    # =========================================================================
    # Step 1: Compute
    # =========================================================================
    result = compute_attention(attention_config)

    print_separator("STEP 1: Tokens and Dimensions")
    print(f"\n  Tokens ({len(result.tokens)}, {attention_config.token_mode} mode): {result.tokens}")
    print(f"  d_model requested: {attention_config.d_model}  ->  d = {result.d}")
    print(f"  Heads requested:   {attention_config.n_heads}  ->  H = {result.n_heads}")
    print(f"  Head width:        d_head = {result.d_head}")
    print(f"  Causal mask:       {attention_config.causal}")
    print(f"  Seed:              {attention_config.seed}")

    if not result.tokens:
        print("\n  No tokens: enter some text to see attention.")
        return 0

    # =========================================================================
    # Step 2: Show weights
    # =========================================================================
    print_separator("STEP 2: Attention Weights (average over heads)")
    print()
    print(format_weights(result.tokens, result.averaged_weights))

    if args.per_head:
        if len(result.per_head_weights) > 1:
            for h, weights in enumerate(result.per_head_weights):
                print_separator(f"HEAD {h + 1}")
                print()
                print(format_weights(result.tokens, weights))
        else:
            print("\n  Only one head: the average is the head.")

    # =========================================================================
    # Step 3: Verification
    # =========================================================================
    print_separator("STEP 3: Verification")
    row_sums = result.averaged_weights.sum(axis=-1)
    print(f"\n  Row sums (should all be 1): min {row_sums.min():.6f}, max {row_sums.max():.6f}")
    if attention_config.causal:
        future = np.triu(result.averaged_weights, k=1)
        print(f"  Largest weight on a future key (should be ~0): {future.max():.2e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
