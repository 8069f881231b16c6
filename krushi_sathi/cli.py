"""Command line entry point: ask for advice, show updates, or run the API server."""
import argparse
import logging

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from krushi_sathi.client.advisory_client import AdvisoryClient, FallbackPolicy
from krushi_sathi.core.config import settings
from krushi_sathi.models.advisory import AdvisoryResponse, SUPPORTED_LANGS
from krushi_sathi.offline.cache_worker import OfflineCacheTransport

console = Console()


def render_advisory(advisory: AdvisoryResponse) -> None:
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(advisory.steps, start=1))
    body = Markdown(f"{advisory.text}\n\n{steps}")
    subtitle = f"{advisory.lang} · {advisory.source}"
    console.print(Panel(body, title=f"[bold green]{advisory.title}[/]", subtitle=subtitle))


def render_updates(data: dict) -> None:
    weather = data.get("weather") or {}
    console.print(Panel(
        f"Temperature: {weather.get('temperatureC', 'N/A')} °C\n"
        f"Wind: {weather.get('windKph', 'N/A')} km/h\n"
        f"{weather.get('description', '')}",
        title="[bold]Weather[/]",
    ))
    market = Table(title="Market prices")
    market.add_column("Crop")
    market.add_column("₹/kg", justify="right")
    for row in data.get("market", []):
        market.add_row(str(row.get("crop")), str(row.get("pricePerKgInr")))
    console.print(market)
    schemes = Table(title="Schemes")
    schemes.add_column("Scheme")
    schemes.add_column("Status")
    for row in data.get("schemes", []):
        schemes.add_row(str(row.get("title")), str(row.get("status")))
    console.print(schemes)


def build_client(args) -> AdvisoryClient:
    transport = OfflineCacheTransport(base_url=args.server) if args.offline_cache else None
    return AdvisoryClient(
        base_url=args.server,
        lang=getattr(args, "lang", "en"),
        fallback_policy=FallbackPolicy(getattr(args, "fallback", FallbackPolicy.MESSAGE.value)),
        transport=transport,
    )


def cmd_ask(args) -> int:
    with build_client(args) as client:
        with console.status("Processing..."):
            advisory = client.ask(question=args.question, image=args.image)
        render_advisory(advisory)
        if args.save_as:
            saved = client.save(args.save_as, advisory)
            console.print(f"[dim]Saved advisory {saved.id}[/]")
    return 0


def cmd_saved(args) -> int:
    with build_client(args) as client:
        for record in client.list_saved(args.user).items:
            console.print(f"[dim]{record.createdAt:%Y-%m-%d %H:%M}[/]")
            render_advisory(record)
    return 0


def cmd_updates(args) -> int:
    with build_client(args) as client:
        render_updates(client.updates(args.lat, args.lon))
    return 0


def cmd_serve(args) -> int:
    import uvicorn
    uvicorn.run("krushi_sathi.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="krushi-sathi", description="Krushi Sathi agricultural advisory")
    parser.add_argument("--server", default=f"http://localhost:{settings.PORT}", help="API base URL")
    parser.add_argument("--offline-cache", action="store_true", help="Serve canned answers when offline")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Ask a farming question")
    ask.add_argument("question", nargs="?", default=None)
    ask.add_argument("--image", help="Path to a crop photo")
    ask.add_argument("--lang", choices=SUPPORTED_LANGS, default="en")
    ask.add_argument("--fallback", choices=[p.value for p in FallbackPolicy], default=FallbackPolicy.MESSAGE.value)
    ask.add_argument("--save-as", metavar="USER_ID", help="Save the advisory for this user")
    ask.set_defaults(func=cmd_ask)

    saved = sub.add_parser("saved", help="List saved advisories")
    saved.add_argument("user")
    saved.set_defaults(func=cmd_saved)

    updates = sub.add_parser("updates", help="Weather, market and scheme updates")
    updates.add_argument("--lat", type=float)
    updates.add_argument("--lon", type=float)
    updates.set_defaults(func=cmd_updates)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=settings.HOST)
    serve.add_argument("--port", type=int, default=settings.PORT)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s - %(levelname)s - %(message)s')
    if args.command == "ask" and not args.question and not args.image:
        console.print("[red]Provide a question, an --image, or both.[/]")
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
