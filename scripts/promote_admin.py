#!/usr/bin/env python3
"""
设置用户角色

角色修改接口本身只允许管理员调用，第一个管理员需要用此脚本设置：
    python scripts/promote_admin.py --email admin@example.com
"""
import sys
import os
import argparse
from pathlib import Path

# 添加项目路径
backend_dir = Path(__file__).parent / ".." / "src" / "backend"
sys.path.insert(0, str(backend_dir))

# Change to backend directory so relative paths work
os.chdir(str(backend_dir))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".." / ".env")

from app.core.database import SessionLocal
from app.core.exceptions import AppError
from app.models import User
from app.services.user_service import UserService, VALID_ROLES


def main():
    parser = argparse.ArgumentParser(description='设置用户角色')
    parser.add_argument('--email', '-e', required=True, help='用户邮箱')
    parser.add_argument('--role', '-r', default='admin', choices=VALID_ROLES, help='目标角色，默认 admin')
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email).first()
        if not user:
            print(f"用户不存在: {args.email}")
            return 1

        UserService.update_role(db, user.id, args.role)
        print(f"已将 {user.email} (id={user.id}) 的角色设置为 {args.role}")
        return 0
    except AppError as e:
        print(f"设置失败: {e.message}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
