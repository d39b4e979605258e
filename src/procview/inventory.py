"""Process inventory: run the inspectors and correlate their reports."""

from procview.config import InventoryConfig
from procview.correlator import correlate
from procview.host import HostEnvironment
from procview.icons import IconCache, IconLoader, IconResolver, load_file_icon
from procview.models import Inventory
from procview.runner import InspectorRunner

# Lives for the whole process; shared by every inventory run that does not pass its own
ICON_CACHE = IconCache()


def get_processes(
    config: InventoryConfig | None = None,
    host: HostEnvironment | None = None,
    icon_cache: IconCache | None = None,
    icon_loader: IconLoader = load_file_icon,
) -> Inventory:
    """
    Get all running processes with their r77-specific attributes.

    The 32-bit and 64-bit helpers are both invoked because some attributes
    can only be read by a process of matching bitness.

    Args:
        config: Helper location and invocation settings. Defaults to the
            environment configuration.
        host: Host facts. Detected if not given.
        icon_cache: Cache for executable icons. Defaults to the process-wide cache.
        icon_loader: Function loading an icon from a file path.

    Raises:
        InspectorOutputError: If a helper printed a malformed line.
    """
    config = config or InventoryConfig.from_env()
    host = host or HostEnvironment.detect()
    icons = IconResolver(
        ICON_CACHE if icon_cache is None else icon_cache,
        system_dir=host.system_dir,
        windows_dir=host.windows_dir,
        loader=icon_loader,
    )

    runner = InspectorRunner(config, is_64bit_os=host.is_64bit_os)
    helpers = runner.available_helpers()
    outputs = runner.collect_outputs(helpers)
    # Helpers that were attempted but failed still count toward the required reports
    return correlate(outputs, icons=icons, host_elevated=host.is_elevated, expected=len(helpers))
