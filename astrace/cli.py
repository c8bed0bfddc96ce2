# astrace/cli.py
# Usage examples:
#   astrace 8.8.8.8
#   astrace example.com -c 10 --workers 4
#   astrace example.com --no-trace        # ownership of the target only
#   python3 -m astrace.cli 1.1.1.1 -v

import argparse
import logging
import sys

from astrace.brain.aggregator import HopAggregator
from astrace.brain.rules import build_as_path
from astrace.config import Settings
from astrace.enrich.lookup import IPWhoisLookup, resolve_host
from astrace.enrich.resolver import EnrichmentResolver
from astrace.errors import ProbeStreamError, TraceError
from astrace.prober.mtr import MtrProber
from astrace import report

logger = logging.getLogger("astrace")


def positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return n


def build_argparser():
    ap = argparse.ArgumentParser(description="Traceroute annotated with AS ownership")
    ap.add_argument("target", help="Destination host name or IP address")
    ap.add_argument("-n", "--no-trace", action="store_true", help="Only look up the target, do not trace")
    ap.add_argument("-c", "--rounds", type=positive_int, help="Probe rounds per hop (mtr -c)")
    ap.add_argument("-m", "--max-hops", type=positive_int, help="Maximum number of hops to probe")
    ap.add_argument("--workers", type=positive_int, help="Concurrent ASN lookups after the trace ends")
    ap.add_argument("--timeout", type=float, help="Timeout in seconds for each ASN lookup")
    ap.add_argument("--no-rdns", dest="reverse_dns", action="store_false", default=None,
                    help="Skip reverse DNS for hops")
    ap.add_argument("--sudo", dest="use_sudo", action="store_true", default=None,
                    help="Run mtr through sudo -n")
    ap.add_argument("--mtr-bin", help="Path to the mtr binary")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return ap


def settings_from_args(args, settings: Settings = None) -> Settings:
    s = settings or Settings.from_env()
    overrides = {
        "rounds": args.rounds,
        "max_hops": args.max_hops,
        "lookup_workers": args.workers,
        "lookup_timeout": args.timeout,
        "reverse_dns": args.reverse_dns,
        "use_sudo": args.use_sudo,
        "mtr_bin": args.mtr_bin,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(s, name, value)
    if args.verbose:
        s.log_level = "DEBUG"
    return s


def run_trace(target: str, address: str, target_info, settings: Settings, prober=None, lookup=None,
              out=None) -> str:
    """Trace address and return the rendered report."""
    prober = prober or MtrProber.from_settings(settings)
    lookup = lookup or IPWhoisLookup.from_settings(settings)

    out = out or sys.stdout
    interactive = out.isatty()

    def collecting():
        print(report.COLLECTING, end="\r" if interactive else "\n", file=out, flush=True)

    # printed on the first event, after any launch error
    state = HopAggregator(prober, settings).run(address, on_first_event=collecting)
    if state.stop_reason == "stream_error" and not state.records:
        raise ProbeStreamError(f"no trace data received for {target}")

    hops = list(state.hops(address))
    resolver = EnrichmentResolver(lookup, target_address=address, target_info=target_info)
    infos = resolver.resolve_hops(hops, workers=settings.lookup_workers)
    as_path = build_as_path(hops, infos)

    if interactive and state.events_seen:
        # overwrite the collecting line
        print("\r\033[K", end="", file=out)
    return report.render_report(hops, infos, as_path)


def main(argv=None) -> int:
    args = build_argparser().parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(level=settings.log_level.upper(), stream=sys.stderr,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.debug("settings: %s", settings)

    try:
        addresses = resolve_host(args.target)
        address = addresses[0]
        lookup = IPWhoisLookup.from_settings(settings)
        target_info = EnrichmentResolver(lookup).resolve(address)
        print(report.render_target(args.target, address, target_info, addresses[1:]))

        if args.no_trace:
            return 0

        print()
        print(run_trace(args.target, address, target_info, settings, lookup=lookup))
    except TraceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nError: interrupted", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
