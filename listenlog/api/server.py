import argparse
import os


def main():
    parser = argparse.ArgumentParser(description='ListenLog API Server')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind to')
    parser.add_argument('--port', type=int, default=8000, help='Port to bind to')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload')
    parser.add_argument('--log-level', default='info', help='Uvicorn log level')
    parser.add_argument('--activity-log', help='Path to the activity log JSON file')
    parser.add_argument('--timezone', help='Default IANA timezone for calendar bucketing')
    parser.add_argument('--watch', action='store_true', help='Watch the activity log for changes')
    args = parser.parse_args()

    # Settings are read from the environment when the app module is imported,
    # which also covers the reloader's child process.
    if args.activity_log:
        os.environ["LISTENLOG_ACTIVITY_LOG"] = args.activity_log
    if args.timezone:
        os.environ["LISTENLOG_TIMEZONE"] = args.timezone
    if args.watch:
        os.environ["LISTENLOG_WATCH"] = "1"

    import uvicorn

    uvicorn.run(
        "listenlog.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
    )

if __name__ == "__main__":
    main()
