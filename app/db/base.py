from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Models live in app.db.models and import Base from here;
# app.db.init_db imports that package so create_all sees every table
