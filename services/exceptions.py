class BulletinError(Exception):
    """성적표 도메인 공통 예외"""
    code = "BULLETIN_ERROR"
    status_code = 400


class StudentNotFoundError(BulletinError):
    code = "STUDENT_NOT_FOUND"
    status_code = 404

    def __init__(self, student_id: int):
        self.student_id = student_id
        super().__init__(f"학생을 찾을 수 없습니다 (student_id={student_id})")


class ClassNotFoundError(BulletinError):
    code = "CLASS_NOT_FOUND"
    status_code = 404

    def __init__(self, class_id: int):
        self.class_id = class_id
        super().__init__(f"학급을 찾을 수 없습니다 (class_id={class_id})")
