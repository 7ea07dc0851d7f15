"""Command line entry point: generate a card and export it."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

from linkcard.config import Settings, get_settings
from linkcard.controller import CardController
from linkcard.errors import ExportError
from linkcard.errors.logger import get_logger
from linkcard.models.card import VIEWPORTS, CardTheme, ColorScheme, GenerationStep
from linkcard.pipeline.assembler import CardAssembler
from linkcard.pipeline.favicon import FaviconAcquirer
from linkcard.pipeline.metadata import MetadataAcquirer
from linkcard.pipeline.proxy import ProxyResolver
from linkcard.pipeline.screenshot import ScreenshotUrlBuilder
from linkcard.render.export import ExportFormat, ExportOptions, ImageExporter, decode_data_uri
from linkcard.render.playwright_renderer import PlaywrightRenderer
from linkcard.render.surface import CardSurface

logger = logging.getLogger(__name__)


def create_controller(
    settings: Settings, client: httpx.AsyncClient, renderer: PlaywrightRenderer
) -> CardController:
    """Wire the pipeline, render surface and exporter together."""
    resolver = ProxyResolver()
    assembler = CardAssembler(
        metadata=MetadataAcquirer(settings.metadata, http_client=client),
        favicon=FaviconAcquirer(
            client, resolver=resolver, min_bytes=settings.http.favicon_min_bytes
        ),
        screenshots=ScreenshotUrlBuilder(resolver),
    )
    return CardController(
        assembler=assembler,
        surface=CardSurface(client),
        exporter=ImageExporter(renderer),
        error_logger=get_logger(),
        download_options=ExportOptions(pixel_density=settings.export.download_pixel_density),
        preview_options=ExportOptions(pixel_density=settings.export.preview_pixel_density),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turn a URL into a shareable preview card")
    parser.add_argument("url", help="Website URL (scheme optional)")
    parser.add_argument(
        "--viewport",
        choices=[viewport.id for viewport in VIEWPORTS],
        default=VIEWPORTS[0].id,
        help="Device size used for the website screenshot",
    )
    parser.add_argument(
        "--website-theme",
        choices=[scheme.value for scheme in ColorScheme],
        default=ColorScheme.LIGHT.value,
        help="Color scheme requested from the website",
    )
    parser.add_argument(
        "--theme",
        choices=[theme.value for theme in CardTheme],
        default=CardTheme.LIGHT.value,
        help="Card styling",
    )
    parser.add_argument("--png", action="store_true", help="Download the card as PNG")
    parser.add_argument("--svg", action="store_true", help="Download the card as SVG")
    parser.add_argument(
        "--meta-tags",
        action="store_true",
        help="Print social meta tags and save the preview snapshot",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=Path("."), help="Directory for exported files"
    )
    parser.add_argument("--json", action="store_true", help="Print the card record as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def write_data_uri(data_uri: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(decode_data_uri(data_uri))
    return path


async def run(args: argparse.Namespace, settings: Settings | None = None) -> int:
    """Generate the card and run the requested exports.

    Returns:
        Process exit code
    """
    settings = settings or get_settings()

    async with httpx.AsyncClient(
        headers={"User-Agent": settings.http.user_agent},
        timeout=settings.http.timeout,
        follow_redirects=True,
    ) as client:
        async with PlaywrightRenderer(client, timeout_ms=settings.export.timeout_ms) as renderer:
            controller = create_controller(settings, client, renderer)
            controller.select_viewport(args.viewport)
            controller.set_color_scheme(ColorScheme(args.website_theme))
            controller.set_theme(CardTheme(args.theme))

            record = await controller.generate(args.url)
            status = controller.state.status
            if record is None or status.step is not GenerationStep.COMPLETED:
                print(f"❌ {status.message or 'Nothing to generate'}")
                return 1

            if args.json:
                print(json.dumps(record.model_dump(mode="json"), indent=2))
            else:
                print(f"✅ Card generated for {record.url}")
                print(f"   Title: {record.title}")
                print(f"   Description: {record.description}")
                print(f"   Favicon: {'found' if record.has_favicon else 'none (globe placeholder)'}")

            exit_code = 0
            for wanted, fmt in ((args.png, ExportFormat.PNG), (args.svg, ExportFormat.SVG)):
                if not wanted:
                    continue
                try:
                    data_uri = await controller.download(fmt)
                except ExportError as e:
                    print(f"❌ Could not generate image. Error: {e}")
                    exit_code = 1
                    continue
                path = write_data_uri(data_uri, args.output_dir / controller.export_filename(fmt))
                print(f"   Saved {path}")

            if args.meta_tags:
                try:
                    preview = await controller.social_preview()
                except ExportError as e:
                    print(f"❌ Could not generate social preview. Error: {e}")
                    return 1
                name = controller.export_filename(ExportFormat.PNG).replace(".png", "-preview.png")
                path = write_data_uri(preview.image, args.output_dir / name)
                print(f"   Saved preview {path}\n")
                print(preview.meta_tags)

            return exit_code


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"\n❌ Fatal error: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
