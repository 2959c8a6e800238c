#!/usr/bin/env python3
"""topicstore CLI - train, inspect and validate topic model checkpoints.

Usage:
    topicstore lda <config.toml>
    topicstore topics [config.toml] [-k N] [--topic T] [--vocabulary FILE]
    topicstore info <model_dir>
    topicstore validate <model_dir> [--label L] [--strict] [--json]
    topicstore --version
    topicstore --help

Commands:
    lda       Run the inference method named in the [lda] group and save the model
    topics    Print the most probable terms of each topic
    info      List the snapshots stored in a model directory
    validate  Check a snapshot for truncation, size and normalization problems

Examples:
    # Train with the configured inference method
    topicstore lda config.toml

    # Show the top 15 terms per topic with term text
    topicstore topics config.toml -k 15 --vocabulary vocab.txt

    # Check the latest final snapshot
    topicstore validate lda-model --label final --strict
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .checkpoint.store import CheckpointStore, FINAL_LABEL
from .checkpoint.validator import CheckpointValidator, ValidationResult, ValidationSeverity
from .config import LdaConfig, TopicModelConfig, load_config_file
from .exceptions import TopicStoreError
from .inference import get_inference
from .query import load_topic_model
from .utils.logging import setup_logging
from .vocabulary import Vocabulary

PROG = "topicstore"

METHOD_DESCRIPTIONS = {
    "gibbs": "serial Gibbs sampling",
    "pargibbs": "parallel Gibbs sampling",
    "cvb": "serial collapsed variational bayes",
    "scvb": "stochastic collapsed variational bayes",
}


def get_version():
    """Get package version."""
    from topicstore import __version__
    return __version__


def cmd_lda(args):
    """Run LDA as configured and save the final model."""
    if len(args.config) != 1:
        print(f"Usage:\t{PROG} lda config.toml", file=sys.stderr)
        return 1

    config_file = args.config[0]
    try:
        config = load_config_file(config_file)
        lda_config = LdaConfig.from_toml(config, file_name=config_file)
        strategy = get_inference(lda_config.inference)
    except TopicStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Beginning LDA using {METHOD_DESCRIPTIONS[lda_config.inference]}...")
    try:
        model = strategy.from_config(config, lda_config)
        model.run(lda_config.max_iters)
        model.save()
    except TopicStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    paths = model.store.paths(lda_config.result_file)
    print(f"Saved {paths.theta} and {paths.phi}")
    return 0


def cmd_topics(args):
    """Print the top-k terms of each topic."""
    try:
        if args.config:
            model_config = TopicModelConfig.from_file(args.config)
        else:
            model_config = TopicModelConfig.from_env()
        if args.label:
            model_config.result_file = args.label

        vocabulary = Vocabulary.from_file(args.vocabulary) if args.vocabulary else None
        model = load_topic_model(model_config, vocabulary=vocabulary)

        if args.topic is not None:
            topic_ids = [args.topic]
        else:
            topic_ids = list(range(model.num_topics()))

        for topic_id in topic_ids:
            print(f"Topic {topic_id}:")
            for term in model.top_k(topic_id, args.k):
                label = term.text or f"<{term.term_id}>"
                print(f"  {label:<25} {term.probability:.6f}")
    except (TopicStoreError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_info(args):
    """Show the snapshots stored in a model directory."""
    store = CheckpointStore(args.model_dir)
    if not store.directory.is_dir():
        print(f"Error: Directory not found: {store.directory}", file=sys.stderr)
        return 1

    labels = store.labels()
    if not labels:
        print(f"No checkpoints found in: {store.directory}")
        return 1

    print("=" * 60)
    print(f"Model directory: {store.directory}")
    print("=" * 60)
    print(f"\n{'Label':<25} {'Theta':<12} {'Phi':<12}")
    print("-" * 60)
    for label in labels:
        paths = store.paths(label)
        theta_kb = paths.theta.stat().st_size / 1024
        phi_kb = paths.phi.stat().st_size / 1024
        print(f"{label:<25} {theta_kb:<9.1f} KB {phi_kb:<9.1f} KB")
    print("-" * 60)

    try:
        state = store.read_state()
    except TopicStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if state is not None:
        status = "converged" if state.converged else "not converged"
        print(f"\nIteration {state.iteration} ({status}): "
              f"{state.num_topics} topics, {state.num_words} words, {state.num_docs} docs")
    latest = store.latest_iteration()
    if latest is not None:
        print(f"Latest iteration snapshot: {store.iteration_label(latest)}")
    return 0


def format_result_text(result: ValidationResult, label: str, verbose: bool = False) -> str:
    """Format validation result as human-readable text."""
    status = "VALID" if result.valid else "INVALID"
    status_symbol = "[OK]" if result.valid else "[FAIL]"
    lines = [f"{status_symbol} {label}: {status}"]

    if result.stats:
        lines.append(
            f"  {result.stats['num_topics']} topics x {result.stats['num_words']} words, "
            f"{result.stats['num_docs']} documents"
        )

    for error in result.errors:
        symbol = {
            ValidationSeverity.ERROR: "  [x]",
            ValidationSeverity.WARNING: "  [!]",
            ValidationSeverity.INFO: "  [i]",
        }[error.severity]
        lines.append(f"{symbol} {error.code}: {error.message}")
        if verbose and error.details:
            lines.append(f"      Details: {error.details}")

    return "\n".join(lines)


def format_result_json(result: ValidationResult, directory: Path, label: str) -> dict:
    """Format validation result as JSON-serializable dict."""
    return {
        "directory": str(directory),
        "label": label,
        "valid": result.valid,
        "errors": [
            {
                "code": e.code,
                "message": e.message,
                "severity": e.severity.value,
                "details": e.details,
            }
            for e in result.errors
        ],
        "stats": result.stats,
    }


def cmd_validate(args):
    """Validate a snapshot."""
    validator = CheckpointValidator(tolerance=args.tolerance, strict=args.strict)
    result = validator.validate(args.model_dir, args.label)

    if args.json_output:
        print(json.dumps(format_result_json(result, args.model_dir, args.label), indent=2))
    else:
        print(format_result_text(result, args.label, verbose=args.verbose))

    return 0 if result.valid else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="topicstore - topic model checkpoints and queries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  topicstore lda config.toml
  topicstore topics config.toml -k 15 --vocabulary vocab.txt
  topicstore info lda-model
  topicstore validate lda-model --label final
        """
    )
    parser.add_argument("--version", action="version", version=f"{PROG} {get_version()}")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # lda command
    lda_parser = subparsers.add_parser(
        "lda",
        help="Run LDA inference and save the model",
        description="Run the inference method named in the [lda] group of a TOML file. "
                    "No strategy ships with topicstore: the method must be registered "
                    "with topicstore.inference.register_inference before this command "
                    "can train."
    )
    lda_parser.add_argument("config", nargs="*", help="TOML configuration file")

    # topics command
    topics_parser = subparsers.add_parser(
        "topics",
        help="Print the top terms of each topic",
        description="Load a model via the [lda] group (or TOPICSTORE_* variables) "
                    "and print the most probable terms per topic."
    )
    topics_parser.add_argument("config", nargs="?", help="TOML configuration file")
    topics_parser.add_argument("-k", type=int, default=10,
                               help="Terms per topic (default: 10)")
    topics_parser.add_argument("--topic", type=int, help="Only show this topic")
    topics_parser.add_argument("--label", help="Snapshot label (default: result-file or final)")
    topics_parser.add_argument("--vocabulary", help="Vocabulary file, one term per line")

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="List snapshots in a model directory",
        description="Display the snapshots and training state of a model directory."
    )
    info_parser.add_argument("model_dir", help="Model directory (model-prefix)")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a snapshot",
        description="Check a snapshot for missing files, truncation and normalization."
    )
    validate_parser.add_argument("model_dir", type=Path, help="Model directory (model-prefix)")
    validate_parser.add_argument("--label", default=FINAL_LABEL,
                                 help=f"Snapshot label (default: {FINAL_LABEL})")
    validate_parser.add_argument("--strict", action="store_true",
                                 help="Treat normalization warnings as errors")
    validate_parser.add_argument("--tolerance", type=float, default=1e-6,
                                 help="Allowed deviation of a sum from 1 (default: 1e-6)")
    validate_parser.add_argument("--json", action="store_true", dest="json_output",
                                 help="Output results as JSON")
    validate_parser.add_argument("-v", "--verbose", action="store_true",
                                 help="Show detailed information")

    args = parser.parse_args(argv)

    setup_logging(level=getattr(logging, args.log_level))

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handler
    commands = {
        "lda": cmd_lda,
        "topics": cmd_topics,
        "info": cmd_info,
        "validate": cmd_validate,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
