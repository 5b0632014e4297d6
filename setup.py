
SETUP_INFO = dict(
    name = 'sastopology',
    version = '0.1.0',
    author = 'INFINIDAT',

    url = 'http://www.infinidat.com',
    license = 'PSF',
    description = """Discovers the SAS topology of a Linux host.""",
    long_description = """Correlates SCSI devices, multipath legs, enclosure slots and HBA ports/phys from sysfs.""",

    # http://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers = [
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: Python Software Foundation License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: System :: Hardware",
    ],

    install_requires = ['infi.pyutils', 'infi.exceptools', 'infi.execute', 'infi.asi >= 0.1.10', 'infi.dtypes.hctl',
                        'PyYAML', ],
    extras_require = {
        'test': ['mock', 'pytest', ],
    },
    python_requires = '>=3.6',

    package_dir = {'': 'src'},
    include_package_data = True,
    zip_safe = False,

    entry_points = dict(
        console_scripts = ['sastopo-discover = sastopology.examples:discover'],
        gui_scripts = []),
    )


def setup():
    from setuptools import setup as _setup
    from setuptools import find_packages
    SETUP_INFO['packages'] = find_packages('src')
    _setup(**SETUP_INFO)

if __name__ == '__main__':
    setup()
