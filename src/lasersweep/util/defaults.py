# -*- coding: utf-8 -*-

DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"

# instruments
DEFAULT_CLD_RESOURCE = "USB0::4883::32847::M01053290::0::INSTR"
DEFAULT_CLD_TIMEOUT = 1.0  # seconds
DEFAULT_MPM_HOST = "192.168.1.161"
DEFAULT_MPM_PORT = 5000
DEFAULT_MPM_TIMEOUT = 2.0  # seconds
MPM_QUERY_DELAY = 0.01  # seconds between write and read on the socket
DEFAULT_MAX_ERROR_READS = 32  # bound on error queue polling

# sweep
DEFAULT_SAVE_DIR = "logs"
DEFAULT_OPERATING_WAVELENGTH_NM = 980
ZEROING_SETTLE_TIME = 3.0  # seconds, hard wait after MPM zeroing
DEFAULT_STABILIZATION_DELAY_MS = 500.0
