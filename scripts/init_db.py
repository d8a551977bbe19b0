#!/usr/bin/env python3
"""
数据库初始化脚本
创建所有数据库表，--reset 时先删除全部表（仅开发环境使用）
"""
import sys
import os
import argparse
from pathlib import Path

# Add src/backend to path
backend_dir = Path(__file__).parent / ".." / "src" / "backend"
sys.path.insert(0, str(backend_dir))

# Change to backend directory so relative paths work
os.chdir(str(backend_dir))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".." / ".env")

from app.core.logging_config import setup_logging
from app.models import init_db, drop_all


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='初始化数据库表')
    parser.add_argument('--reset', action='store_true', help='先删除所有表再重建（会清空数据）')
    args = parser.parse_args()

    setup_logging()

    if args.reset:
        print("删除所有表...")
        drop_all()

    print("初始化数据库...")
    init_db()
    print("完成！")
