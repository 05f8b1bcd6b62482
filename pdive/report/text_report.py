import csv
import logging
import os
from datetime import datetime

TIME_FMT = "%Y-%m-%d %H:%M:%S"
STAMP_FMT = "%Y%m%d_%H%M%S"

logger = logging.getLogger("pdive.report")


def _prepare(output_dir, end_time):
    os.makedirs(output_dir, exist_ok=True)
    end_time = end_time or datetime.now()
    return end_time, end_time.strftime(STAMP_FMT)


def write_active_report(state, output_dir, end_time=None):
    """Detailed text report plus per-port CSV. Returns ``(txt_path, csv_path)``."""
    end_time, stamp = _prepare(output_dir, end_time)
    info = state.scan_info
    scan_time = info.start_time.strftime(TIME_FMT)

    txt_file = os.path.join(output_dir, f"recon_report_{stamp}.txt")
    with open(txt_file, 'w', encoding='utf-8') as f:
        f.write("PDIVE DETAILED SCAN REPORT\n")
        f.write("=" * 60 + "\n\n")
        f.write("SCAN SUMMARY\n")
        f.write("-" * 20 + "\n")
        f.write("Targets:\n")
        for target in info.targets:
            f.write(f"  {target}\n")
        f.write(f"\nScan Start Time: {scan_time}\n")
        f.write(f"Scan End Time: {end_time.strftime(TIME_FMT)}\n")
        f.write(f"Scanner Version: {info.scanner}\n")
        f.write(f"Total Live Hosts: {len(state.hosts)}\n")
        f.write(f"Total Open Ports: {state.total_ports}\n")
        f.write(f"Unresponsive Hosts: {state.unresponsive_hosts}\n\n")

        f.write("DETAILED RESULTS\n")
        f.write("-" * 20 + "\n")
        if not state.hosts:
            f.write("No live hosts discovered\n")
        for record in state.hosts.values():
            f.write(f"\nHost: {record.host}\n")
            f.write("=" * (len(record.host) + 6) + "\n")
            if record.ports:
                f.write("Open Ports:\n")
                for p in record.ports:
                    f.write(f"  {p.port:5d}/tcp  {p.service or 'unknown'}\n")
            else:
                f.write("  No open ports detected\n")

    csv_file = os.path.join(output_dir, f"recon_results_{stamp}.csv")
    with open(csv_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(["Host", "Port", "Protocol", "State", "Service", "Scan_Time"])
        for record in state.hosts.values():
            if not record.ports:
                writer.writerow([record.host, "", "", "host_up", "no_open_ports", scan_time])
                continue
            for p in record.ports:
                writer.writerow([record.host, p.port, "tcp", p.state, p.service or "unknown", scan_time])

    logger.info(f"Active reports written: {txt_file}, {csv_file}")
    return txt_file, csv_file


def write_passive_report(state, output_dir, end_time=None):
    """Sorted host list as text plus a hostname CSV. Returns ``(txt_path, csv_path)``."""
    end_time, stamp = _prepare(output_dir, end_time)
    info = state.scan_info
    scan_time = info.start_time.strftime(TIME_FMT)

    txt_file = os.path.join(output_dir, f"passive_discovery_{stamp}.txt")
    with open(txt_file, 'w', encoding='utf-8') as f:
        f.write("PDIVE PASSIVE DISCOVERY REPORT\n")
        f.write("=" * 60 + "\n\n")
        f.write("DISCOVERY SUMMARY\n")
        f.write("-" * 20 + "\n")
        f.write("Targets:\n")
        for target in info.targets:
            f.write(f"  {target}\n")
        f.write(f"\nScan Start Time: {scan_time}\n")
        f.write(f"Scan End Time: {end_time.strftime(TIME_FMT)}\n")
        f.write(f"Scanner Version: {info.scanner}\n")
        f.write(f"Discovery Mode: {info.discovery_mode.upper()}\n")
        f.write(f"Total Discovered Hosts: {len(state.hosts)}\n\n")

        f.write("DISCOVERED HOSTS\n")
        f.write("-" * 20 + "\n")
        if state.hosts:
            for host in sorted(state.hosts):
                f.write(f"{host}\n")
        else:
            f.write("No hosts discovered\n")

    csv_file = os.path.join(output_dir, f"passive_hosts_{stamp}.csv")
    with open(csv_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(["Host", "Discovery_Method", "Scan_Time"])
        for host in state.hosts:
            writer.writerow([host, "passive", scan_time])

    logger.info(f"Passive reports written: {txt_file}, {csv_file}")
    return txt_file, csv_file
