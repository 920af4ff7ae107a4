from setuptools import setup, find_packages

from lebu import __version__

install_requires = [
    'colorama',
    'keyring',
    'paramiko>=3.0',
    'prompt_toolkit',
    'psycopg2-binary',
    'pymongo',
    'pymysql',
    'redis',
    'tabulate',
]

if __name__ == '__main__':
    setup(
        name='lebu',
        version=__version__,
        description='Terminal connection manager for SSH, databases, and SFTP',
        python_requires='>=3.8',
        packages=find_packages(include=['lebu', 'lebu.*']),
        install_requires=install_requires,
        extras_require={
            'test': ['pytest'],
        },
        entry_points={
            'console_scripts': [
                'lebu=lebu.__main__:main',
            ],
        },
    )
