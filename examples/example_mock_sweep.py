import numpy as np

import lasersweep.system
import lasersweep.util

# Start the client log
lasersweep.util.start_client_log(log_to_stdout=True, log_level="INFO")

# Simulated CLD1015 + MPM-210H, see src/lasersweep/system/systems/mock.ini
system = lasersweep.system.LaserSystem("mock")
dev_status = system.startup()
print(dev_status)


def print_point(record):
    print(f"{record.current_mA:8.2f} mA -> {record.power} dBm")


ok, msg = system.run_sweep(
    module=0,
    start_mA=0.0,
    stop_mA=100.0,
    step_mA=10.0,
    stabilization_delay_ms=50.0,
    on_point=print_point,
)
system.packdown()

if not ok:
    raise SystemExit(f"Sweep failed: {msg}")

records = lasersweep.util.load_sweep_records(msg)
current = np.array([r.current_mA for r in records])
power = np.array([float(r.power) for r in records])
slope = np.polyfit(current, power, 1)[0]
print(f"Saved {len(records)} points to {msg}, slope {slope:.3f} dB/mA")

lasersweep.util.shutdown_client_log()
