import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

from collectors.feed import FeedCollector
from curator.ai import GeminiScorer, GeminiReportGenerator, FALLBACK_MODELS
from curator.config import Settings
from curator.db import Database
from curator.http_client import HTTPClient
from curator.models import ArticleStatus
from curator.publisher import TelegramPublisher
from curator.schedule import next_run
from curator.service import CuratorService

# Load env
load_dotenv()

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_service(settings: Settings, http: HTTPClient) -> CuratorService:
    models = [settings.gemini_model] + FALLBACK_MODELS if settings.gemini_model else None
    return CuratorService(
        store=Database(settings.db_path, enabled=settings.db_enabled),
        collector=FeedCollector(http, enrich_entries=settings.enrich_articles),
        oracle=GeminiScorer(models=models),
        generator=GeminiReportGenerator(models=models),
        publisher=TelegramPublisher(),
    )


def parse_value(raw: str):
    """config set values: JSON when it parses (numbers, lists, objects), else plain text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def print_result(result) -> int:
    print(("OK: " if result.ok else "FAILED: ") + result.message)
    return 0 if result.ok else 1


async def serve(service: CuratorService):
    logger.info("Starting scheduled digest curation...")
    while True:
        now = datetime.now().astimezone()
        due = next_run(service.config, now)
        logger.info(f"Next run at {due.isoformat()}")
        await asyncio.sleep((due - now).total_seconds())
        for result in await service.run_cycle():
            logger.info(("OK: " if result.ok else "FAILED: ") + result.message)


async def run(args) -> int:
    http = HTTPClient()
    try:
        service = build_service(Settings.from_env(), http)

        if args.command == "collect":
            return print_result(await service.collect())
        if args.command == "process":
            return print_result(await service.process())
        if args.command == "generate":
            result = await service.generate_report()
            if result.ok:
                print(f"Report id: {result.payload.id}")
            return print_result(result)
        if args.command == "publish":
            report = service.reports.get(args.report_id)
            if args.file:
                with open(args.file, encoding="utf-8") as f:
                    markdown = f.read()
            else:
                markdown = report.markdown if report else ""
            return print_result(await service.publish_report(args.report_id, markdown))
        if args.command == "articles":
            status = ArticleStatus(args.status) if args.status else None
            for a in service.articles(status=status, search=args.search):
                score = a.score if a.score is not None else "-"
                print(f"{a.id}  {a.status.value:<8} {score}  [{a.category or '-'}]  {a.title}")
            return 0
        if args.command == "reports":
            for r in service.report_list():
                print(f"{r.id}  {r.status.value:<14} {r.generated_at[:10]}  {r.title}  ({len(r.included_article_ids)} articles)")
            return 0
        if args.command == "logs":
            for entry in service.logs()[:args.limit]:
                print(f"{entry.timestamp}  {entry.severity.value:<7} {entry.message}")
            return 0
        if args.command == "config":
            if args.action == "set":
                changes = {}
                for pair in args.pairs:
                    key, sep, value = pair.partition("=")
                    if not sep:
                        print(f"FAILED: expected key=value, got {pair!r}")
                        return 1
                    changes[key] = parse_value(value)
                return print_result(service.update_config(**changes))
            print(json.dumps(service.config.to_dict(), indent=2, ensure_ascii=False))
            return 0
        if args.command == "serve":
            await serve(service)
        return 0
    finally:
        await http.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="digest-curator", description="Curate and publish a periodic news digest.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("collect", help="Collect new articles from the configured targets")
    sub.add_parser("process", help="Score, filter and quota-balance RAW articles")
    sub.add_parser("generate", help="Generate a report from SELECTED articles")

    publish = sub.add_parser("publish", help="Publish a report")
    publish.add_argument("report_id")
    publish.add_argument("--file", help="Markdown file with the final, edited report body")

    articles = sub.add_parser("articles", help="List articles")
    articles.add_argument("--status", choices=[s.value for s in ArticleStatus])
    articles.add_argument("--search", help="Match against title or source")

    sub.add_parser("reports", help="List reports")

    logs = sub.add_parser("logs", help="Show the audit log")
    logs.add_argument("--limit", type=int, default=20)

    config = sub.add_parser("config", help="Show or change configuration")
    config.add_argument("action", choices=["show", "set"], nargs="?", default="show")
    config.add_argument("pairs", nargs="*", help="key=value pairs for set")

    sub.add_parser("serve", help="Run collect/process/generate on the configured schedule")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Stopped.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
