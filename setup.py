from setuptools import setup, find_packages

setup(
    name='chatdist',
    version='0.1.0',
    description='Download-site backend that tracks chat app builds across distribution channels',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    package_data={
        'chatdist.web': ['templates/*.html', 'static/*.css'],
    },
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'urllib3',
        'rich',
        'packaging',
        'platformdirs',
        'fastapi',
        'uvicorn',
        'sqlalchemy>=2.0',
        'jinja2',
        'markdown-it-py',
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'pytest<9.1',
            'pytest-mock',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'chatdist=chatdist.cli:main',
        ],
    },
)
