import lasersweep.system
import lasersweep.util

lasersweep.util.start_client_log(log_to_stdout=True, log_level="DEBUG")

system = lasersweep.system.LaserSystem(
    "lab"
    # "mock",
)
system.startup()

try:
    if not system.get_tec_state():
        system.enable_tec()  # give the TEC time to settle before sweeping

    future = system.start_sweep(
        module=0,
        start_mA=0.0,
        stop_mA=150.0,
        step_mA=1.0,
        stabilization_delay_ms=500.0,
    )
    try:
        result = future.result()
    except KeyboardInterrupt:
        # laser is switched off and partial data saved
        system.cancel_sweep()
        result = future.result()

    if result.ok:
        print(f"Data saved to: {result.path}")
    else:
        print(f"Sweep aborted: {result.error}")
        if result.error.path is not None:
            print(f"Partial data saved to: {result.error.path}")
finally:
    system.packdown()
    lasersweep.util.shutdown_client_log()
