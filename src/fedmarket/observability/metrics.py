from prometheus_client import Counter, Gauge, Histogram

# HTTP
HTTP_REQUEST_DURATION = Histogram(
    "fm_http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    ["method", "path", "status_code"],
)
HTTP_REQUESTS_TOTAL = Counter(
    "fm_http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)

# Round simulation
SIMULATIONS_ACTIVE = Gauge(
    "fm_simulations_active",
    "Number of round simulations currently in flight",
)
SIMULATION_ROUNDS_TOTAL = Counter(
    "fm_simulation_rounds_total",
    "Total number of committed simulation rounds",
)
SIMULATION_DURATION = Histogram(
    "fm_simulation_duration_seconds",
    "Duration of a full round simulation in seconds",
    buckets=(1, 5, 10, 20, 30, 60, 120, 300),
)
REWARDS_PAID_TOTAL = Counter(
    "fm_rewards_paid_total",
    "Sum of reward amounts credited to contributions",
)
TASKS_COMPLETED_TOTAL = Counter(
    "fm_tasks_completed_total",
    "Number of tasks that reached their target accuracy",
)

# Curve synthesis
CURVE_SYNTHESES_TOTAL = Counter(
    "fm_curve_syntheses_total",
    "Total number of synthetic training runs",
    ["task_type"],
)
