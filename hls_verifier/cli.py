"""
HLS Stream verifier CLI - 检查 m3u8 播放列表树与 .ts 分片
"""
import argparse
import sys
from datetime import datetime, timezone

from hls_verifier.errors import VerifierError
from hls_verifier.report import build_run_report, write_run_report
from hls_verifier.types import ExitStatus
from hls_verifier.utils.config import load_config
from hls_verifier.utils.logger import logger, set_log_level
from hls_verifier.utils.reporter import FAIL_MARK, PASS_MARK, Reporter
from hls_verifier.validator import ValidationRun


BANNER = [
    "HLS Stream verifier",
    "-------------------",
    "",
    "This script checks:",
    "- Whether all .ts fragments can be downloaded",
    "- Whether all .ts fragments have video frames",
    "- Whether all .ts fragments start with a keyframe",
    "",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hls-verifier",
        description="HLS Stream verifier: 递归下载播放列表并检查每个分片以关键帧开头",
    )

    parser.add_argument(
        "urls",
        nargs="*",
        metavar="URL",
        help=".m3u8 播放列表 URL (可多个)"
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="JSON 配置文件路径"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP 请求超时 (秒)"
    )
    parser.add_argument(
        "--ffprobe",
        type=str,
        default=None,
        help="ffprobe 可执行文件路径"
    )
    parser.add_argument(
        "--proxy",
        type=str,
        default=None,
        help="HTTP(S) 代理, 例如 http://127.0.0.1:7890"
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="不校验 TLS 证书"
    )
    parser.add_argument(
        "--keep-workspace",
        action="store_true",
        help="保留下载的临时文件"
    )
    parser.add_argument(
        "--report-json",
        type=str,
        default=None,
        help="将验证结果树写入 JSON 文件"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="显示详细日志"
    )
    return parser


def main(argv=None, reporter: Reporter | None = None, run_factory=ValidationRun) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        set_log_level("DEBUG")

    cfg = load_config(args.config)
    if args.timeout is not None:
        cfg.timeout = args.timeout
    if args.ffprobe:
        cfg.ffprobe_path = args.ffprobe
    if args.proxy is not None:
        cfg.proxy_url = args.proxy
    if args.insecure:
        cfg.verify_tls = False
    if args.keep_workspace:
        cfg.keep_workspace = True
    cfg.__post_init__()

    reporter = reporter or Reporter()
    for line in BANNER:
        reporter.info(line)

    started_at = datetime.now(timezone.utc)
    run = run_factory(reporter=reporter, config=cfg)
    try:
        status = run.run(args.urls)
    except KeyboardInterrupt:
        logger.info("Validation interrupted by user")
        reporter.info(f"Interrupted {FAIL_MARK}")
        return int(ExitStatus.FAILED)
    except VerifierError as e:
        logger.error(str(e))
        reporter.info(f"Error: {e} {FAIL_MARK}")
        return int(ExitStatus.FAILED)

    reporter.info()

    # The last line printed must agree with the exit code.
    if args.report_json:
        report = build_run_report(
            run.results,
            success=status == ExitStatus.OK,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        try:
            path = write_run_report(report, args.report_json)
            logger.info(f"Report written to {path}")
        except OSError as e:
            logger.error(f"Failed to write report {args.report_json}: {e}")
            reporter.info(f"Failed to write report {args.report_json}: {e} {FAIL_MARK}")
            return int(ExitStatus.FAILED)

    if status == ExitStatus.OK:
        reporter.info(f"All resources valid {PASS_MARK}")
    else:
        reporter.info(f"Validation failed {FAIL_MARK}")

    return int(status)


if __name__ == "__main__":
    sys.exit(main())
