from setuptools import setup, find_packages

setup(
    name             = 'excusemaster',
    version          = '1.0.0',
    description      = 'ExcuseMaster — structured excuse generation over an OpenAI-compatible chat API',
    author           = 'ExcuseMaster',
    packages         = find_packages(exclude=['tests*']),
    install_requires = open('requirements.txt').read().splitlines(),
    extras_require   = {
        'test': ['pytest>=7.0', 'httpx>=0.24'],
    },
    entry_points     = {
        'console_scripts': [
            'excusemaster     = excusemaster.cli:main',
        ],
    },
    python_requires  = '>=3.10',
    classifiers      = [
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)
