#!/usr/bin/env python3
"""
Configuration Management CLI Tool

Usage:
    python -m config.cli show          # Show current configuration
    python -m config.cli show --json   # JSON format output
    python -m config.cli validate      # Validate configuration
    python -m config.cli env           # Generate environment variable template
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def cmd_show(args):
    """Show current configuration"""
    from config.settings import settings

    if args.json:
        data = settings.model_dump(mode="json")

        def convert_paths(obj):
            if isinstance(obj, dict):
                return {k: convert_paths(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_paths(v) for v in obj]
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        data = convert_paths(data)
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    print("=" * 60)
    print("Paperscope Configuration")
    print("=" * 60)

    print("\n📁 Data Directories:")
    print(f"  data_dir:    {settings.data_dir}")

    print("\n🌐 Service Configuration:")
    print(f"  host:         {settings.host}")
    print(f"  serve_port:   {settings.serve_port}")

    print("\n🗄️ Database Configuration:")
    print(f"  path:             {settings.db.path}")
    print(f"  timeout:          {settings.db.timeout}s")
    print(f"  max_retries:      {settings.db.max_retries}")
    print(f"  retry_base_sleep: {settings.db.retry_base_sleep}s")

    print("\n🔍 Search Configuration:")
    print(f"  max_papers:             {settings.search.max_papers}")
    print(f"  max_snippets_per_paper: {settings.search.max_snippets_per_paper}")
    print(f"  overfetch_factor:       {settings.search.overfetch_factor}")
    print(f"  snippet_window:         {settings.search.snippet_window}")
    print(f"  embedding_limit:        {settings.search.embedding_limit}")

    print("\n🧭 ANN Configuration:")
    print(f"  ef_search:        {settings.ann.ef_search}")
    print(f"  nlist:            {settings.ann.nlist or '(auto)'}")
    print(f"  min_train_size:   {settings.ann.min_train_size}")

    print("\n🌐 Web Configuration:")
    print(f"  access_log:         {settings.web.access_log}")
    print(f"  max_content_length: {settings.web.max_content_length}")

    print("\n📋 Log Configuration:")
    print(f"  log_level:    {settings.log_level}")
    print(f"  log_format:   {settings.log_format}")

    print("\n" + "=" * 60)


def cmd_validate(args):
    """Validate configuration"""
    from config.settings import settings

    errors = []
    warnings = []

    if not settings.data_dir.exists():
        warnings.append(f"Data directory does not exist: {settings.data_dir}")

    if not Path(settings.db.path).exists():
        warnings.append(f"Corpus database does not exist yet: {settings.db.path}")

    if settings.ann.ef_search < settings.search.embedding_limit:
        errors.append(
            f"ANN ef_search ({settings.ann.ef_search}) is below the default embedding limit "
            f"({settings.search.embedding_limit}); results would be truncated by the index"
        )

    if settings.ann.nlist and settings.ann.nlist > settings.ann.min_train_size:
        warnings.append("ANN nlist exceeds min_train_size; small corpora will fall back to a flat scan")

    if errors:
        print("❌ Configuration validation failed:")
        for e in errors:
            print(f"  - {e}")
        print()

    if warnings:
        print("⚠️  Configuration warnings:")
        for w in warnings:
            print(f"  - {w}")
        print()

    if not errors and not warnings:
        print("✅ Configuration validation passed")
    elif not errors:
        print("✅ Configuration validation passed (with warnings)")

    return 1 if errors else 0


def cmd_env(args):
    """Generate environment variable template"""
    from config.settings import settings

    print("# Environment variable representation of current configuration")
    print("# Can be copied to .env file")
    print()

    print(f"PAPERSCOPE_DATA_DIR={settings.data_dir}")
    print(f"PAPERSCOPE_HOST={settings.host}")
    print(f"PAPERSCOPE_SERVE_PORT={settings.serve_port}")
    print(f"PAPERSCOPE_LOG_LEVEL={settings.log_level}")
    print(f"PAPERSCOPE_LOG_FORMAT={settings.log_format}")
    print()

    print(f"PAPERSCOPE_DB_PATH={settings.db.path}")
    print(f"PAPERSCOPE_DB_TIMEOUT={settings.db.timeout}")
    print(f"PAPERSCOPE_DB_MAX_RETRIES={settings.db.max_retries}")
    print()

    print(f"PAPERSCOPE_SEARCH_MAX_PAPERS={settings.search.max_papers}")
    print(f"PAPERSCOPE_SEARCH_MAX_SNIPPETS_PER_PAPER={settings.search.max_snippets_per_paper}")
    print(f"PAPERSCOPE_SEARCH_OVERFETCH_FACTOR={settings.search.overfetch_factor}")
    print(f"PAPERSCOPE_SEARCH_SNIPPET_WINDOW={settings.search.snippet_window}")
    print(f"PAPERSCOPE_SEARCH_EMBEDDING_LIMIT={settings.search.embedding_limit}")
    print()

    print(f"PAPERSCOPE_ANN_EF_SEARCH={settings.ann.ef_search}")
    print(f"PAPERSCOPE_ANN_NLIST={settings.ann.nlist}")
    print(f"PAPERSCOPE_ANN_MIN_TRAIN_SIZE={settings.ann.min_train_size}")


def main():
    parser = argparse.ArgumentParser(
        description="Paperscope Configuration Management Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m config.cli show          Show current configuration
  python -m config.cli show --json   JSON format output
  python -m config.cli validate      Validate configuration
  python -m config.cli env           Generate environment variables
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    show_parser = subparsers.add_parser("show", help="Show current configuration")
    show_parser.add_argument("--json", action="store_true", help="JSON format output")

    subparsers.add_parser("validate", help="Validate configuration")
    subparsers.add_parser("env", help="Generate environment variable template")

    args = parser.parse_args()

    if args.command == "show":
        cmd_show(args)
    elif args.command == "validate":
        sys.exit(cmd_validate(args))
    elif args.command == "env":
        cmd_env(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
