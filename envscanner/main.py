import argparse
import json
import sys
from pathlib import Path

from envscanner.core.batch import BatchError, BatchRunner
from envscanner.core.config import DEFAULT_TLDS, HarvestConfig, ScanConfig
from envscanner.core.crawler import CrawlError
from envscanner.core.engine import Engine
from envscanner.parsers.hosts import strip_scheme, write_host_list
from envscanner.reporters.console import Log
from envscanner.reporters.json_report import host_report_filename, write_json
from envscanner.sources.crtsh import CertificateHarvester


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="envscanner",
        description="Find exposed .env files and inline secrets on web origins")
    p.add_argument("--proxy", help="Proxy (e.g. http://127.0.0.1:8080)")
    p.add_argument("-v", "--verbose", action="count", default=1,
                   help="-v, -vv")
    p.add_argument("-q", "--quiet", action="store_true",
                   help="Only warnings, failures and written files")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("scan", help="Crawl and scan a single target")
    s.add_argument("target", help="Host or URL (https:// is assumed)")
    s.add_argument("-d", "--depth", type=int, default=2, help="Max crawl depth")
    s.add_argument("-o", "--out", help="Report file (default env-scan-<host>-<ms>.json)")

    b = sub.add_parser("batch", help="Scan every host in a host list")
    b.add_argument("hosts_file", help="One hostname per line; cleaned in place")
    b.add_argument("-o", "--out-dir", default="scan-results")
    b.add_argument("-d", "--depth", type=int, default=1, help="Max crawl depth")
    b.add_argument("--no-dns", action="store_true",
                   help="Do not resolve hosts (and do not rewrite the host list)")

    h = sub.add_parser("harvest", help="Pull candidate hosts from certificate transparency")
    h.add_argument("-n", "--limit", type=int, default=100, help="Hosts per TLD")
    h.add_argument("--tlds", nargs="+", default=DEFAULT_TLDS)
    h.add_argument("-o", "--out", default="hosts.txt")
    return p


def cmd_scan(args, log: Log) -> int:
    config = ScanConfig(max_depth=args.depth, proxy=args.proxy)
    with Engine(config, logger=log) as engine:
        try:
            report = engine.crawl_and_scan(args.target, args.depth)
        except (ValueError, CrawlError) as exc:
            log.fail(f"Error: {exc}")
            return 1

    if not report.findings_count:
        print(f"No env or sk- findings for {args.target}")
        return 0

    out = args.out or str(Path.cwd() / host_report_filename(strip_scheme(args.target)))
    payload = report.to_dict()
    write_json(out, payload)
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    log.ok(f"Wrote results to {out}")
    return 0


def cmd_batch(args, log: Log) -> int:
    config = ScanConfig(max_depth=args.depth, proxy=args.proxy, resolve_dns=not args.no_dns)
    with Engine(config, logger=log) as engine:
        runner = BatchRunner(engine, config, logger=log)
        try:
            runner.run(args.hosts_file, args.out_dir, args.depth)
        except BatchError as exc:
            log.fail(f"Fatal error: {exc}")
            return 1
    return 0


def cmd_harvest(args, log: Log) -> int:
    config = HarvestConfig(tlds=args.tlds, per_tld_limit=args.limit, proxy=args.proxy)
    harvester = CertificateHarvester(config=config, logger=log)
    try:
        hosts = harvester.harvest()
    finally:
        harvester.close()
    try:
        write_host_list(args.out, hosts)
    except OSError as exc:
        log.fail(f"Cannot write {args.out}: {exc}")
        return 1
    log.ok(f"Wrote {len(hosts)} unique domains across TLDs to {args.out}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log = Log(verbose=0 if args.quiet else args.verbose)

    commands = {"scan": cmd_scan, "batch": cmd_batch, "harvest": cmd_harvest}
    return commands[args.command](args, log)


if __name__ == "__main__":
    sys.exit(main())
