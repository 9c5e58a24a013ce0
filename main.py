"""
Main entry point for the Quote Sync System.
Provides command-line interface and system initialization.
"""

import asyncio
import argparse
import sys
from typing import Optional

from utils import main_logger, api_logger, config_manager, initialize_logging, QuoteSyncError
from database import Quote, ALL_CATEGORIES
from quote_manager import QuoteManager


def _ask_keep_server(local: Quote, remote: Quote) -> bool:
    answer = input(
        f'Conflict detected for quote: "{remote.text}"\n'
        f"Local category: {local.category}\n"
        f"Server category: {remote.category}\n"
        f"Keep server version? [Y/n] "
    )
    return answer.strip().lower() in ("", "y", "yes")


async def console_decide(local: Quote, remote: Quote) -> bool:
    """在终端询问用户是否采用服务器版本（阻塞输入放到线程中执行）"""
    return await asyncio.to_thread(_ask_keep_server, local, remote)


def _format_quote(quote: Quote) -> str:
    return f'"{quote.text}" - {quote.category}'


class QuoteSyncApp:
    """语录同步系统主类"""

    def __init__(self, policy_name: Optional[str] = None):
        self.config = config_manager
        self.running = False
        if policy_name:
            # 命令行参数覆盖配置文件中的冲突策略
            self.config.set_nested('sync_config.conflict_policy', policy_name)
        self.manager = QuoteManager(config=self.config, decide=console_decide)

    async def initialize(self, start_scheduler: bool = False):
        """初始化系统"""
        try:
            main_logger.info("[Main] Initializing Quote Sync System...")
            await self.manager.initialize(start_scheduler=start_scheduler)
            main_logger.info("[Main] Quote Sync System initialized successfully")
        except Exception as e:
            main_logger.error(f"[Main] Failed to initialize system: {e}")
            raise

    async def run_forever(self):
        """启动定时同步并保持运行"""
        try:
            main_logger.info("[Main] Starting sync mode...")
            self.running = True
            self._setup_signal_handlers()

            last = self.manager.restore_last_quote()
            if last:
                print(_format_quote(last))

            while self.running:
                await asyncio.sleep(1)

        except KeyboardInterrupt:
            main_logger.info("[Main] Received keyboard interrupt, shutting down...")

    async def start_api_server(self, host: Optional[str] = None, port: Optional[int] = None):
        """启动API服务器，定时同步随应用生命周期启动"""
        import uvicorn
        from api.app import create_app

        api_config = self.config.get_api_config()
        final_host = host if host is not None else api_config.host
        final_port = port if port is not None else api_config.port

        api_logger.info(f"[Main] Starting API server on {final_host}:{final_port}...")
        config = uvicorn.Config(
            create_app(self.manager, start_scheduler=True),
            host=final_host,
            port=final_port,
            log_level="info"
        )
        server = uvicorn.Server(config)
        await server.serve()

    async def sync_once(self):
        """执行一次同步并打印结果"""
        report = await self.manager.sync_now()
        if report.changed:
            print(report.merge.message)
        print(f"fetched_ok={report.fetched_ok} remote={report.remote_count} "
              f"changed={report.changed} pushed_ok={report.pushed_ok}")

    def list_quotes(self, category: Optional[str]):
        selected = category if category is not None else self.manager.current_filter
        quotes = self.manager.list_quotes(selected)
        print(f"Category: {selected} ({len(quotes)} quotes)")
        for quote in quotes:
            print(f"  {_format_quote(quote)}")

    def show_categories(self):
        current = self.manager.current_filter
        for category in [ALL_CATEGORIES] + self.manager.categories():
            marker = "*" if category == current else " "
            print(f"{marker} {category}")

    def select_filter(self, category: str):
        quotes = self.manager.select_filter(category)
        print(f"Filter set to '{category}' ({len(quotes)} quotes)")

    def show_random(self, category: Optional[str]):
        quote = self.manager.random_quote(category)
        print(_format_quote(quote) if quote else "No quotes available for this category.")

    async def add_quote(self, text: str, category: str):
        await self.manager.add_quote(text, category)
        print("Quote added!")

    async def import_file(self, path: str):
        imported = await self.manager.import_file(path)
        print(f"Quotes imported successfully! ({len(imported)} quotes)")

    def export_file(self, path: Optional[str]):
        target = self.manager.export_to_file(path)
        print(f"Exported {len(self.manager.repository)} quotes to {target}")

    async def shutdown(self):
        """关闭系统"""
        try:
            main_logger.info("[Main] Shutting down Quote Sync System...")
            await self.manager.close()
            main_logger.info("[Main] Quote Sync System shutdown completed")
        except Exception as e:
            main_logger.error(f"[Main] Error during shutdown: {e}")

    def _setup_signal_handlers(self):
        """设置信号处理器"""
        try:
            import signal

            def signal_handler(signum, frame):
                main_logger.info(f"[Main] Received signal {signum}, shutting down...")
                self.running = False

            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)

        except Exception as e:
            main_logger.warning(f"[Main] Failed to setup signal handlers: {e}")


def create_parser():
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        description="Quote Sync System - 本地优先的语录管理与服务器同步",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  python main.py run                              # 启动定时同步
  python main.py api --host 127.0.0.1 --port 8000 # 启动API服务器（含定时同步）
  python main.py --policy interactive sync        # 立即同步一次，冲突时询问
  python main.py add "Stay hungry." Motivation    # 新增语录
  python main.py import quotes.json               # 导入语录
  python main.py export --output backup.json      # 导出语录
  python main.py list --category life             # 按分类列出
        """
    )
    parser.add_argument('--policy', choices=['server_wins', 'interactive', 'local_wins'],
                        help='冲突处理策略（默认读取 sync_config.conflict_policy）')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    subparsers.add_parser('run', help='启动定时同步模式')

    api_parser = subparsers.add_parser('api', help='启动API服务器')
    api_parser.add_argument('--host', default=None, help='监听地址 (默认读取 api_config.host)')
    api_parser.add_argument('--port', type=int, default=None, help='监听端口 (默认读取 api_config.port)')

    subparsers.add_parser('sync', help='立即执行一次同步')

    list_parser = subparsers.add_parser('list', help='列出语录')
    list_parser.add_argument('--category', default=None, help='分类，all 表示全部（默认使用上次选择的分类）')

    add_parser = subparsers.add_parser('add', help='新增语录')
    add_parser.add_argument('text', help='语录内容')
    add_parser.add_argument('category', help='分类')

    import_parser = subparsers.add_parser('import', help='从 JSON 文件导入语录')
    import_parser.add_argument('file', help='JSON 文件路径')

    export_parser = subparsers.add_parser('export', help='导出语录到 JSON 文件')
    export_parser.add_argument('--output', default=None, help='输出路径 (默认: quotes.json)')

    random_parser = subparsers.add_parser('random', help='随机显示一条语录')
    random_parser.add_argument('--category', default=None, help='分类（默认使用上次选择的分类）')

    subparsers.add_parser('categories', help='显示分类列表')

    filter_parser = subparsers.add_parser('filter', help='设置默认过滤分类')
    filter_parser.add_argument('category', help='分类名或 all')

    return parser


async def main(argv=None):
    """主函数"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    initialize_logging()
    app = None
    try:
        app = QuoteSyncApp(policy_name=args.policy)

        if args.command == 'api':
            # 初始化由 API 生命周期负责
            await app.start_api_server(host=args.host, port=args.port)
            return

        await app.initialize(start_scheduler=args.command == 'run')

        if args.command == 'run':
            await app.run_forever()
        elif args.command == 'sync':
            await app.sync_once()
        elif args.command == 'list':
            app.list_quotes(args.category)
        elif args.command == 'add':
            await app.add_quote(args.text, args.category)
        elif args.command == 'import':
            await app.import_file(args.file)
        elif args.command == 'export':
            app.export_file(args.output)
        elif args.command == 'random':
            app.show_random(args.category)
        elif args.command == 'categories':
            app.show_categories()
        elif args.command == 'filter':
            app.select_filter(args.category)
        else:
            parser.print_help()

    except QuoteSyncError as e:
        print(f"Error: {e.message}")
        sys.exit(1)
    except OSError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        main_logger.info("[Main] Received keyboard interrupt")
    except Exception as e:
        main_logger.error(f"[Main] System error: {e}")
        sys.exit(1)
    finally:
        if app is not None and args.command != 'api':
            await app.shutdown()


def run():
    """命令行入口"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
