import argparse
import logging
import sys
import webbrowser

from .config.settings import Config
from .errors import InvalidTransition, OrderRefused
from .models.scan import AppState
from .services.container import build_services, config_mapping


def print_results(snap: dict) -> None:
    res = snap["analysis_result"]
    print(f"dish: {res['dish_name']}")
    print(f"      {res['description']}")
    chunks = res["grounding_chunks"]
    if not chunks:
        print("No specific local restaurants identified in the immediate area.")
        return
    print("nearby:")
    for i, chunk in enumerate(chunks):
        maps = chunk.get("maps") or {}
        phone = maps.get("phone_number") or "no phone"
        print(f"  [{i}] {maps.get('title') or 'Local Restaurant':32s}  {phone:18s}  {maps.get('uri', '')}")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Identify a dish from a photo and find nearby restaurants serving it")
    ap.add_argument("image", help="Path to the dish photo")
    ap.add_argument("--lat", type=float, help="Latitude to bias the restaurant search")
    ap.add_argument("--lng", type=float, help="Longitude to bias the restaurant search")
    ap.add_argument("--order", type=int, metavar="N", help="Open a WhatsApp order for result N")
    ap.add_argument("--provider", default=None, help="Delivery provider named in the order message")
    ap.add_argument("--no-browser", action="store_true", help="Print the order link instead of opening it")
    ap.add_argument("--user", default="cli@dishout.local", help="Email reported with the lead")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.WARNING)

    opener = None if args.no_browser else webbrowser.open_new_tab
    svc = build_services(config_mapping(Config), opener=opener)
    try:
        scan = svc.new_session()
        if not scan.capture(args.user):
            print("Sign in required.", file=sys.stderr)
            return 2

        with open(args.image, "rb") as f:
            image_bytes = f.read()

        state = scan.select_file(image_bytes, svc.location_provider(args.lat, args.lng))
        snap = scan.snapshot()
        if state != AppState.RESULTS:
            print(f"Service Error: {snap['error_msg']}", file=sys.stderr)
            return 1
        print_results(snap)

        if args.order is not None:
            provider = args.provider or (svc.delivery_providers[0] if svc.delivery_providers else "WhatsApp")
            try:
                scan.request_order(args.order)
            except (OrderRefused, InvalidTransition) as e:
                print(str(e), file=sys.stderr)
                return 1
            url = scan.choose_provider(provider, args.user)
            print(f"order link: {url}")
        return 0
    finally:
        svc.shutdown(wait=True)


if __name__ == "__main__":
    sys.exit(main())
