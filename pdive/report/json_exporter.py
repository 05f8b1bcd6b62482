import os
from datetime import datetime

from pdive.core.results import SCANNER_NAME
from pdive.core.utils import save_json


def export_json(state, output_dir, end_time=None):
    """Machine-readable dump of a ScanState snapshot. Returns the path or None."""
    os.makedirs(output_dir, exist_ok=True)
    end_time = end_time or datetime.now()
    filename = os.path.join(output_dir, f"pdive_results_{end_time.strftime('%Y%m%d_%H%M%S')}.json")

    export_object = {
        "meta": {
            "tool": SCANNER_NAME,
            "scan_time": state.scan_info.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "mode": state.scan_info.discovery_mode,
        },
        "findings": state.to_dict(),
    }

    if save_json(export_object, filename):
        return os.path.abspath(filename)
    return None
