from flagquiz import db
from flagquiz.services.quiz.records import CountryRecord


class Country(db.Model):
    __tablename__ = 'country'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, nullable=False, index=True)
    name_es = db.Column(db.String(128), nullable=False)
    name_en = db.Column(db.String(128), nullable=False)

    @classmethod
    def from_record(cls, record: CountryRecord) -> 'Country':
        return cls(code=record.code, name_es=record.name_es, name_en=record.name_en)

    def to_record(self) -> CountryRecord:
        return CountryRecord(code=self.code, name_es=self.name_es, name_en=self.name_en)
