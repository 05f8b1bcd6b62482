import sys
import argparse
from datetime import datetime

from pdive.core.config import ScanConfig, MODES
from pdive.core.display import DisplayManager
from pdive.core.engine import PDiveEngine, STOP_NO_TARGETS
from pdive.core.utils import load_config, setup_logging, DEFAULT_CONFIG
from pdive.recon.targets import parse_target_argument, load_targets_from_file
from pdive.report.json_exporter import export_json
from pdive.report.text_report import write_active_report, write_passive_report

EPILOG = """Examples:
  pdive -t 192.168.1.0/24
  pdive -f targets.txt -o /tmp/scan_results -T 100
  pdive -t "192.168.1.1,example.com,10.0.0.0/24"
  pdive -t example.com -m passive"""


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pdive",
        description="PDive - Automated Penetration Testing Discovery Tool",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-t", "--target", help="Target IP address, hostname, CIDR range, or comma-separated list")
    source.add_argument("-f", "--file", help="File containing targets (one per line)")
    parser.add_argument("-o", "--output", default=None, help="Output directory (default: recon_output)")
    parser.add_argument("-T", "--threads", type=int, default=None, help="Number of threads (default: 50)")
    parser.add_argument("-m", "--mode", choices=MODES, default=None, help="Discovery mode: active (default) or passive")
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG, help="JSON settings file")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip the authorization prompt")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-file", default="pdive.log", help="Log file path")
    return parser


def confirm_authorization(display, targets, answer=None):
    display.log("WARNING: This tool is for authorized security testing only!", "CRITICAL")
    display.log("Ensure you have proper permission before scanning any network.", "WARNING")
    shown = ", ".join(targets[:3])
    if len(targets) > 3:
        shown += f" ... (+{len(targets) - 3} more)"
    display.console.print(f"Targets to scan: {shown}", markup=False)
    if answer is None:
        try:
            answer = input("Do you have authorization to scan these targets? (y/N): ")
        except EOFError:
            answer = ""
    return answer.strip().lower() == "y"


def write_reports(display, state, config):
    end_time = datetime.now()
    if config.mode == "passive":
        txt, csv_path = write_passive_report(state, config.output_dir, end_time)
        display.log("Passive discovery reports saved to:", "SUCCESS")
        display.log(f"  - Host List Report: {txt}", "INFO")
        display.log(f"  - CSV Host List: {csv_path}", "INFO")
    else:
        txt, csv_path = write_active_report(state, config.output_dir, end_time)
        display.log("Reports saved to:", "SUCCESS")
        display.log(f"  - Detailed Report: {txt}", "INFO")
        display.log(f"  - CSV Data: {csv_path}", "INFO")
    json_path = export_json(state, config.output_dir, end_time)
    if json_path:
        display.log(f"  - JSON Export: {json_path}", "INFO")


def main(argv=None):
    args = build_parser().parse_args(argv)
    display = DisplayManager()
    setup_logging(args.log_file, verbose=args.verbose, console=display.console)

    try:
        config = ScanConfig.from_settings(
            load_config(args.config),
            threads=args.threads,
            output_dir=args.output,
            mode=args.mode,
        )
    except (TypeError, ValueError) as e:
        display.log(f"Invalid configuration: {e}", "ERROR")
        return 1

    if args.file:
        try:
            targets = load_targets_from_file(args.file)
        except (OSError, UnicodeDecodeError) as e:
            display.log(str(e), "ERROR")
            return 1
        if not targets:
            display.log("No valid targets found in file", "ERROR")
            return 1
    else:
        targets = parse_target_argument(args.target)
        if not targets:
            display.log("Either -t or -f flag is required", "ERROR")
            return 1

    if not args.yes and not confirm_authorization(display, targets):
        display.console.print("Scan aborted.")
        return 1

    engine = PDiveEngine(targets, config, display)
    state = None
    try:
        state = engine.run()
    except KeyboardInterrupt:
        display.log("Scan interrupted by user.", "WARNING")
        state = engine.store.snapshot()

    if engine.stop_reason == STOP_NO_TARGETS:
        return 1
    if engine.completed or state.hosts:
        display.print_scan_summary(state)
        write_reports(display, state, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
