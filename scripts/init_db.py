# 執行: python -m scripts.init_db
from database.db import init_db

if __name__ == "__main__":
    init_db()
    print("✅ 資料表建立完成")
