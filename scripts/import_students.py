# 執行: python -m scripts.import_students [csv 路徑]
import csv
import sys
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.students import Student as StudentModel  # ✅ 模型 import

CSV_PATH = "data/students.csv"  # ✅ 預設檔案路徑


def migrate_students(csv_path: str = CSV_PATH) -> int:
    db: Session = SessionLocal()
    count = 0

    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                student = StudentModel(
                    id=row["id"],                                   # 學生 ID (uuid)
                    org_id=row.get("org_id") or None,               # 機構 ID
                    full_name=row["full_name"],                     # 全名
                    nick_name=row.get("nick_name") or None,         # 暱稱
                    student_oid=row.get("student_oid") or None,     # 學生編號
                    pending_confirmation_count=int(row.get("pending_confirmation_count") or 0),
                    approved_lesson_nonscheduled=int(row.get("approved_lesson_nonscheduled") or 0),
                )
                db.merge(student)
                count += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(f"✅ 學生資料 CSV → DB 匯入完成 ({count} 筆)")
    return count


if __name__ == "__main__":
    migrate_students(sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
