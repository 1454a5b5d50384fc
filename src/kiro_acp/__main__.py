"""Entry point for running kiro-acp as an ACP agent.

Usage:
    python -m kiro_acp            # serve ACP over stdio
    python -m kiro_acp doctor     # check the kiro-cli installation

This starts the ACP agent listening on stdin/stdout for JSON-RPC
messages from an ACP client (Zed, etc.).
"""

import sys

from kiro_acp.logging import get_logger, setup_logging

log = get_logger()


async def _main() -> None:
    """Async entry point with proper cleanup."""
    import asyncio
    import json

    from acp.agent.connection import AgentSideConnection
    from acp.connection import StreamDirection, StreamEvent
    from acp.stdio import stdio_streams

    from kiro_acp.transport.acp.agent import create_agent

    agent = create_agent()

    def log_message(event: StreamEvent) -> None:
        """Log all ACP messages for debugging."""
        direction = "<<" if event.direction == StreamDirection.INCOMING else ">>"
        method = event.message.get("method", "response")
        msg_id = event.message.get("id", "-")
        msg_str = json.dumps(event.message, default=str)

        if method == "response":
            result = event.message.get("result", {})
            stop_reason = (
                result.get("stopReason", "n/a") if isinstance(result, dict) else "n/a"
            )
            error = event.message.get("error")
            if error:
                log.debug("%s response (id=%s) ERROR: %s", direction, msg_id, error)
            else:
                log.debug(
                    "%s response (id=%s) stop_reason=%s len=%d",
                    direction, msg_id, stop_reason, len(msg_str)
                )
        elif method == "session/update":
            update = event.message.get("params", {}).get("update", {})
            log.debug(
                "%s %s type=%s len=%d",
                direction, method, update.get("sessionUpdate", "unknown"), len(msg_str)
            )
        else:
            preview = msg_str[:200] + "..." if len(msg_str) > 200 else msg_str
            log.debug("%s %s (id=%s) %s", direction, method, msg_id, preview)

    output_stream, input_stream = await stdio_streams()
    conn = AgentSideConnection(
        agent,
        input_stream,
        output_stream,
        listening=False,
        use_unstable_protocol=True,
    )
    conn._conn.add_observer(log_message)

    log.info("Ready to accept ACP requests")

    try:
        await conn.listen()
    except (BrokenPipeError, ConnectionResetError):
        log.info("Pipe closed, shutting down...")
    finally:
        log.info("Connection closed, cleaning up...")
        try:
            await asyncio.wait_for(conn.close(), timeout=2.0)
        except asyncio.TimeoutError:
            log.warning("Connection close timed out, forcing exit")
        except Exception as e:
            log.warning("Error during cleanup: %s", e)


def serve() -> int:
    """Run the ACP agent on stdio until the client disconnects."""
    import asyncio

    from kiro_acp.config import load_config

    # Load config before logging so we can use config.logging settings
    config = load_config()
    setup_logging(config.logging)

    log.info(
        "Starting kiro-acp (wrap=%s, strategy=%s)",
        config.kiro.wrap,
        config.transcript.strategy,
    )

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        log.info("Interrupted")
    log.info("Exiting...")
    return 0


def main() -> None:
    """Console script entry point."""
    from kiro_acp.cli import run_cli

    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
